"""
Export rows for the "download my data" feature.

Only the tabular content is built here. Turning the rows into a
workbook or CSV file is the caller's job.
"""

from typing import Sequence

from expense_tracker.models.record import Record

EXPORT_HEADER = ["Date", "Category", "Amount", "Description"]

# Day-first, as shown in the tracker's tables
EXPORT_DATE_FORMAT = "%d/%m/%Y"


def export_rows(records: Sequence[Record], include_header: bool = True) -> list[list[str]]:
    """
    Rows of Date, Category, Amount, Description, newest record first.

    Records with equal dates keep their input order.
    """
    ordered = sorted(records, key=lambda r: r.date, reverse=True)
    rows = [EXPORT_HEADER.copy()] if include_header else []
    rows.extend(
        [
            r.date.strftime(EXPORT_DATE_FORMAT),
            r.category.value,
            str(r.amount),
            r.description,
        ]
        for r in ordered
    )
    return rows
