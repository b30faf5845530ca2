"""Rewrite stored sales stages to the configured spellings.

Rows written by older tables can carry ``Demo Approved``/``Approved`` or
``Deposit Paid``/``Negotiating`` interchangeably, and some phase 3 rows still
hold the approval label. Run with ``--apply`` to write; the default is a dry run.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from app.core.startup import bootstrap
from app.database.db import get_db_session
from app.database.models import Contact
from app.pipeline.stages import get_vocabulary


def migrate_stage_labels(apply: bool = False) -> dict[str, int]:
    vocabulary = get_vocabulary()
    summary = {"scanned": 0, "rewritten": 0, "unrecoverable": 0}
    with get_db_session() as session:
        for contact in session.query(Contact).order_by(Contact.created_at.asc()):
            summary["scanned"] += 1
            canonical = vocabulary.canonical_stage(contact.current_phase, contact.sales_stage)
            if canonical is None:
                summary["unrecoverable"] += 1
                home = vocabulary.phase_of(contact.sales_stage)
                hint = f" (a phase {home.value} stage)" if home is not None else ""
                print(f"! {contact.id}: phase {contact.current_phase} stage {contact.sales_stage!r}{hint} has no mapping")
                continue
            if canonical != contact.sales_stage:
                summary["rewritten"] += 1
                print(f"  {contact.id}: {contact.sales_stage!r} -> {canonical!r}")
                contact.sales_stage = canonical
        if apply:
            session.commit()
        else:
            session.rollback()
    return summary


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--apply", action="store_true", help="write the rewritten labels")
    args = parser.parse_args()

    bootstrap()
    summary = migrate_stage_labels(apply=args.apply)
    mode = "applied" if args.apply else "dry run"
    print(f"{mode}: scanned={summary['scanned']} rewritten={summary['rewritten']} unrecoverable={summary['unrecoverable']}")


if __name__ == "__main__":
    main()
