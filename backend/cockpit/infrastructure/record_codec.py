"""Mapping between ProjectRecord entities and the document shape shared by both stores.

Documents use the field names the UI and the cloud collection already use
(``valor_estimado``, ``messages[].from``, epoch-millisecond message timestamps).
Record timestamps (``createdAt``/``updatedAt``) are handled by each store.
"""

from datetime import datetime, timezone
from typing import Any

from cockpit.domain.entities import ChatEntry, MessageSender, ProjectRecord

_KNOWN_FIELDS = (
    "name",
    "phone",
    "status",
    "valor_estimado",
    "messages",
    "bom",
    "custo_material",
    "custo_mao_obra",
    "contract",
)
_TIMESTAMP_FIELDS = ("createdAt", "updatedAt", "id")


def to_epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def parse_timestamp(value: Any) -> datetime | None:
    """Accept epoch ms, epoch seconds, ISO strings, datetimes and {seconds, nanos} maps."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        if isinstance(value, dict) and "seconds" in value:
            seconds = float(value.get("seconds") or 0) + float(value.get("nanoseconds") or 0) / 1e9
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        if isinstance(value, (int, float)):
            # Heuristic: anything past year ~2286 in seconds is really milliseconds
            seconds = value / 1000 if value > 1e10 else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError, TypeError):
        # Out-of-range or garbled values read as missing
        return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def entry_to_document(entry: ChatEntry) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "id": entry.id,
        "from": entry.sender.value,
        "text": entry.text,
        "type": entry.type,
        "timestamp": to_epoch_ms(entry.timestamp),
    }
    if entry.src:
        doc["src"] = entry.src
    return doc


def entry_from_document(doc: dict[str, Any]) -> ChatEntry:
    sender_raw = str(doc.get("from", "assistant"))
    # Older conversations tagged the assistant by its persona name
    sender = MessageSender.USER if sender_raw == "user" else MessageSender.ASSISTANT
    return ChatEntry(
        id=str(doc.get("id", "")),
        sender=sender,
        text=str(doc.get("text") or ""),
        type=str(doc.get("type") or "text"),
        src=doc.get("src") or None,
        timestamp=parse_timestamp(doc.get("timestamp")) or datetime.now(timezone.utc),
    )


def fields_to_document(fields: dict[str, Any]) -> dict[str, Any]:
    """Encode a partial update (record attribute names → document values)."""
    doc: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "messages":
            doc[key] = [entry_to_document(e) if isinstance(e, ChatEntry) else e for e in value]
        elif key == "extra":
            doc.update(value or {})
        else:
            doc[key] = value
    return doc


def record_to_document(record: ProjectRecord) -> dict[str, Any]:
    doc = dict(record.extra)
    doc.update(
        {
            "name": record.name,
            "phone": record.phone,
            "status": record.status,
            "valor_estimado": record.valor_estimado,
            "messages": [entry_to_document(m) for m in record.messages],
            "bom": record.bom,
            "custo_material": record.custo_material,
            "custo_mao_obra": record.custo_mao_obra,
            "contract": record.contract,
        }
    )
    return doc


def record_from_document(
    record_id: str,
    doc: dict[str, Any],
    *,
    created_at: datetime | None = None,
    updated_at: datetime | None = None,
) -> ProjectRecord:
    extra = {k: v for k, v in doc.items() if k not in _KNOWN_FIELDS and k not in _TIMESTAMP_FIELDS}
    created = created_at or parse_timestamp(doc.get("createdAt"))
    updated = updated_at or parse_timestamp(doc.get("updatedAt")) or created
    return ProjectRecord(
        id=record_id,
        name=str(doc.get("name") or ""),
        phone=str(doc.get("phone") or ""),
        status=str(doc.get("status") or "Lead"),
        valor_estimado=_as_float(doc.get("valor_estimado")),
        messages=[entry_from_document(m) for m in doc.get("messages") or [] if isinstance(m, dict)],
        bom=str(doc.get("bom") or ""),
        custo_material=_as_float(doc.get("custo_material")),
        custo_mao_obra=_as_float(doc.get("custo_mao_obra")),
        contract=str(doc.get("contract") or ""),
        extra=extra,
        created_at=created,
        updated_at=updated or datetime.fromtimestamp(0, tz=timezone.utc),
    )


def _as_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0
