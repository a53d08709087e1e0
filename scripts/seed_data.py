"""
Seed Data Script - Creates sample QAP records at different review stages
Run: python -m scripts.seed_data
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qap_workflow.repositories.mongo_client import get_collection, create_indexes, close_connection
from qap_workflow.repositories.qap_repo import MongoQAPRepository
from qap_workflow.services.qap_service import QAPService
from qap_workflow.config.settings import settings
from qap_workflow.domain.models import User, QAPSpecs, SpecRow
from qap_workflow.utils.logger import setup_logging, set_correlation_id
from qap_workflow.utils.idgen import generate_correlation_id


REQUESTOR = User(username="praful", role="requestor")
PRODUCTION = User(username="prod.p4", role="production", plant="p2,p4")
QUALITY = User(username="qual.p4", role="quality", plant="p2,p4")
TECHNICAL_HEAD = User(username="jmr", role="technical-head")
PLANT_HEAD = User(username="cmk", role="plant-head")


def sample_specs() -> QAPSpecs:
    """Two MQP rows and one Visual/EL row, one mismatch per section"""
    return QAPSpecs(
        mqp=[
            SpecRow(
                sno=1, criteria="MQP", sub_criteria="Cell", characteristics="Efficiency",
                specification=">= 22.5%", match="yes"
            ),
            SpecRow(
                sno=2, criteria="MQP", sub_criteria="Glass", characteristics="Thickness",
                specification="3.2 mm", customer_specification="2.0 mm",
                match="no", review_by=["production", "quality"]
            ),
        ],
        visual=[
            SpecRow(
                sno=1, criteria="Visual", defect="Cell crack", criteria_limits="Not allowed",
                customer_specification="Not allowed, EL image per module",
                match="no", review_by="quality"
            ),
        ],
    )


def create_sample_qaps():
    """Create one draft, one record waiting on the head and one approved record"""
    records_col = get_collection(settings.qap_collection)

    # Check if already seeded
    if records_col.count_documents({}) > 0:
        print("Database already has data. Skipping seed.")
        return

    service = QAPService(MongoQAPRepository(records_col))

    draft = service.create_draft(
        REQUESTOR, "Sunrise Energy", "Rooftop 5MW", "p4",
        specs=sample_specs(), order_quantity=9000, product_type="Mono PERC"
    )
    print(f"Created draft: {draft.id}")

    pending = service.create_draft(
        REQUESTOR, "Greenfield Solar", "Utility 50MW", "p4",
        specs=sample_specs(), order_quantity=90000, product_type="TOPCon"
    )
    service.submit(REQUESTOR, pending.id)
    service.respond(PRODUCTION, pending.id, {0: "Glass supplier can do 2.0 mm"})
    pending = service.respond(QUALITY, pending.id, {0: "Agreed", 1: "EL images attached"})
    print(f"Created QAP at {pending.status}: {pending.id}")

    approved = service.create_draft(
        REQUESTOR, "Coastal Power", "Floating 12MW", "p2",
        specs=sample_specs(), order_quantity=24000, product_type="Bifacial"
    )
    service.submit(REQUESTOR, approved.id)
    service.respond(PRODUCTION, approved.id)
    service.respond(QUALITY, approved.id)
    service.respond(TECHNICAL_HEAD, approved.id, {0: "OK to proceed"})
    service.submit_final_comments(REQUESTOR, approved.id, "Customer accepted the deviations")
    approved = service.approve(PLANT_HEAD, approved.id, "Approved for production")
    print(f"Created QAP at {approved.status}: {approved.id}")

    print("\n[OK] Seed data created successfully!")
    print("   - 3 sample QAPs (draft, level-3, approved)")


def main():
    setup_logging()
    set_correlation_id(generate_correlation_id())

    print("=== Seeding database ===")
    print("-" * 40)

    try:
        # Create indexes first
        create_indexes()

        # Create sample data
        create_sample_qaps()
    finally:
        close_connection()

    print("-" * 40)
    print("Done!")


if __name__ == "__main__":
    main()
