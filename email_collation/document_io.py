"""
JSON input/output for collation runs.

Input is a JSON array of message objects, or an object with a
"messages" array. Each message needs at least "id" and "body".
"""

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Union

from .errors import InvalidInputError
from .models import Document

if TYPE_CHECKING:
    from .collator import CollationResult

logger = logging.getLogger("email_collation")


def parse_documents(data: Any) -> List[Document]:
    """
    Convert decoded JSON into Documents.

    Args:
        data: List of message dicts, or dict with a "messages" list

    Returns:
        Documents in input order

    Raises:
        InvalidInputError: If the structure is not a list of messages
    """
    if isinstance(data, dict):
        data = data.get("messages")

    if not isinstance(data, list):
        raise InvalidInputError("Expected a JSON array of messages")

    documents = []
    for position, item in enumerate(data):
        if not isinstance(item, dict):
            raise InvalidInputError(f"Message at position {position} is not an object")
        if item.get("id") is None:
            raise InvalidInputError(f"Message at position {position} has no id")
        if not isinstance(item.get("body", ""), str):
            raise InvalidInputError(f"Message {item['id']} has a non-text body")
        documents.append(Document.from_dict(item))

    return documents


def load_documents(path: Union[str, Path]) -> List[Document]:
    """
    Read messages from a JSON file.

    Raises:
        InvalidInputError: If the file is missing, unreadable or malformed
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise InvalidInputError(f"Input file not found: {path}")
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise InvalidInputError(f"Could not read {path}: {e}")

    documents = parse_documents(data)
    logger.info(f"[DocumentIO] Loaded {len(documents)} messages from {path}")
    return documents


def save_result(
    result: "CollationResult",
    path: Union[str, Path],
    include_embeddings: bool = False
) -> Path:
    """
    Write a collation result as JSON.

    Args:
        result: Collation result
        path: Destination file (parent directories are created)
        include_embeddings: Whether to write each message's embedding

    Returns:
        Path written
    """
    result_data = result.to_dict(include_embeddings=include_embeddings)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result_data, f, ensure_ascii=False, indent=2)
    logger.info(f"[DocumentIO] Wrote {len(result_data.get('messages', []))} messages to {path}")
    return path
