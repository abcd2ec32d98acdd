from datetime import date, datetime

# first three letters of the French short month names
_MONTHS_FR = ("Jan", "Fév", "Mar", "Avr", "Mai", "Jui", "Jui", "Aoû", "Sep", "Oct", "Nov", "Déc")

STATUS_LABELS = {
    "pending": "En attente",
    "accepted": "Accepté",
    "refused": "Refusé",
}


def format_date(value) -> str:
    """``2004-04-04`` -> ``4 Avr. 04``. Raises ValueError on anything else."""
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        value = datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    return f"{value.day} {_MONTHS_FR[value.month - 1]}. {value.year % 100:02d}"


def format_status(status: str) -> str:
    return STATUS_LABELS.get(status, status)
