"""Import study material files as notes with attachments."""
import json
import logging
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from study_companion.models import Attachment, Note, Subject
from study_companion.notes import create_note

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".svg"}


def read_file_content(file_path: str) -> str:
    """Extract the text of a study file. Images carry no text and give ""."""
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix in IMAGE_SUFFIXES:
        return ""
    elif suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        return json.dumps(data, indent=2, ensure_ascii=False)
    elif suffix in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    elif suffix == ".pdf":
        from PyPDF2 import PdfReader
        pages = PdfReader(file_path).pages
        return "\n\n".join((page.extract_text() or "").strip() for page in pages)
    elif suffix == ".docx":
        from docx import Document
        paragraphs = Document(file_path).paragraphs
        return "\n".join(p.text for p in paragraphs if p.text.strip())
    elif suffix in (".html", ".htm"):
        from bs4 import BeautifulSoup
        soup = BeautifulSoup(path.read_text(encoding="utf-8"), "html.parser")
        return soup.get_text("\n", strip=True)
    # .txt, .md and anything unknown: plain text
    return path.read_text(encoding="utf-8", errors="replace")


def _keywords(subject: Subject) -> set[str]:
    """Lower-cased chapter and topic name fragments for a subject."""
    words = set()
    for chapter in subject.chapters or []:
        names = [chapter.name] + [t.name for t in chapter.topics or []]
        for name in names:
            for part in re.split(r"[&,/()]| and ", name.lower()):
                part = part.strip()
                if len(part) > 3:
                    words.add(part)
    return words


def categorize_content(text: str, subjects: list[Subject]) -> Optional[str]:
    """Pick the subject whose chapter/topic names occur most often in ``text``.

    Returns the subject name, or None when nothing matches.
    """
    text_lower = text.lower()
    scores = {}
    for subject in subjects or []:
        scores[subject.name] = sum(1 for kw in _keywords(subject) if kw in text_lower)
    if not scores:
        return None
    best = max(scores, key=scores.get)
    return best if scores[best] > 0 else None


def safe_filename(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", name)


def attachment_type(file_path: str) -> str:
    suffix = Path(file_path).suffix.lower()
    if suffix in IMAGE_SUFFIXES:
        return "image"
    if suffix == ".pdf":
        return "pdf"
    return "other"


def store_attachment(file_path: str, user_id: str, attachments_dir: str,
                     now: Optional[datetime] = None) -> Attachment:
    """Copy a file into the attachment store under ``{user}/notes/``."""
    source = Path(file_path)
    stamp = int((now or datetime.now()).timestamp() * 1000)
    relative = f"{user_id}/notes/{stamp}_{safe_filename(source.name)}"
    target = Path(attachments_dir) / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)
    return Attachment(
        id=relative,
        name=source.name,
        url=target.resolve().as_uri(),
        type=attachment_type(file_path),
        size=target.stat().st_size,
    )


def delete_attachment(attachment: Attachment, attachments_dir: str) -> None:
    """Remove a stored attachment file; a missing file is only logged."""
    try:
        (Path(attachments_dir) / attachment.id).unlink()
    except OSError as e:
        logger.warning("Could not delete attachment %s: %s", attachment.id, e)


def import_file(gateway, user_id: str, file_path: str, subjects: list[Subject],
                attachments_dir: str, subject: Optional[str] = None,
                now: Optional[datetime] = None) -> Note:
    """Turn a file into a note. Auto-categorizes if ``subject`` is not given."""
    path = Path(file_path)
    content = read_file_content(file_path)
    if subject is None:
        subject = categorize_content(content, subjects) or ""
    note = create_note(title=path.stem, subject=subject, content=content, now=now)
    note.attachments.append(store_attachment(file_path, user_id, attachments_dir, now))
    gateway.save_note(user_id, note)
    logger.info("Imported %s (%d chars) into note %s", path.name, len(content), note.id)
    return note
