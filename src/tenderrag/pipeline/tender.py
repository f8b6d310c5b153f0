from tenderrag.entities.owner import TenderRecord


def build_tender_text(record: TenderRecord) -> str | None:
    """Text indexed for a harvested tender: title, description and authority.

    Returns None when the record carries no text at all.
    """
    parts = [record.title.strip()]
    if record.description and record.description.strip():
        parts.append(record.description.strip())
    if record.contracting_authority and record.contracting_authority.strip():
        parts.append(f"Aanbestedende dienst: {record.contracting_authority.strip()}")

    text = "\n\n".join(p for p in parts if p)
    return text or None
