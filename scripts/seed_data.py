import random
import sys
from pathlib import Path

from faker import Faker

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from app.core.enums import Phase
from app.core.exceptions import CRMException
from app.core.startup import bootstrap
from app.database.db import get_db_session
from app.orchestration.pipeline_machine import PendingSideEffect, PipelineStateMachine, SideEffectInput
from app.services.contact_service import ContactService

fake = Faker()

CATEGORY_NAME = "Restaurants"
LEAD_SOURCES = ["Facebook", "Referral", "Walk-in", "Google Maps", "Instagram"]
DEVELOPERS = ["Migs", "Jo", "Ria"]


def _advance(service: ContactService, machine: PipelineStateMachine, contact_id: str, stage: str, payload: SideEffectInput) -> None:
    result = machine.request_stage_change(service.require(contact_id), stage)
    if isinstance(result, PendingSideEffect):
        result = machine.supply(payload)
    service.patch(contact_id, result.patch)


def seed_contacts(count: int = 20) -> None:
    with get_db_session() as session:
        service = ContactService(db=session)
        machine = PipelineStateMachine()
        existing = [c for c in service.list_categories() if c.name == CATEGORY_NAME]
        if existing:
            print(f"Category '{CATEGORY_NAME}' already seeded.")
            return

        category = service.create_category(CATEGORY_NAME)
        print(f"Seeding {count} contacts into '{category.name}'...")
        try:
            for _ in range(count):
                contact = service.insert(
                    category.id,
                    {
                        "business_name": fake.company(),
                        "contact_name": fake.name(),
                        "email": fake.company_email(),
                        "mobile_number": fake.phone_number(),
                        "link": fake.url(),
                        "lead_source": random.choice(LEAD_SOURCES),
                    },
                )
                roll = random.random()
                if roll < 0.3:
                    continue
                _advance(service, machine, contact.id, "Approached", SideEffectInput())
                if roll < 0.55:
                    continue
                _advance(service, machine, contact.id, "Demo Stage", SideEffectInput())
                if roll < 0.8:
                    continue
                _advance(
                    service,
                    machine,
                    contact.id,
                    machine.vocabulary.approval_stage,
                    SideEffectInput(price=random.choice([8000, 12000, 15000, 25000])),
                )
        except CRMException as e:
            print(f"Error seeding data: {e}")
            return

        counts = service.phase_counts(category.id)
        for phase in Phase:
            print(f"{phase.label}: {counts[phase.value]} active")


if __name__ == "__main__":
    bootstrap()
    seed_contacts()
