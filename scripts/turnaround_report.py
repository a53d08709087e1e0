"""
Turnaround Report - Print review turnaround figures for stored QAPs
Run: python -m scripts.turnaround_report --plant p4 --days 30
"""
import argparse
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qap_workflow.repositories.mongo_client import health_check, close_connection
from qap_workflow.repositories.qap_repo import MongoQAPRepository
from qap_workflow.domain.models import TurnaroundFilters
from qap_workflow.engine.turnaround import build_analytics, calculate_average_turnaround_time
from qap_workflow.utils.time import format_duration_ms


def print_report(plant: str, days: int):
    records = MongoQAPRepository().list()
    summary = build_analytics(records, plant=plant, days=days)

    print("=" * 60)
    print(f"QAP TURNAROUND ({plant.upper()}, last {days} days)")
    print("=" * 60)
    print(f"Total: {summary.total}  Approved: {summary.approved}  Pending: {summary.pending}")

    print("\nBy status:")
    for status, count in sorted(summary.status_counts.items()):
        print(f"   - {status}: {count}")

    print("\nAverage submit-to-approve time by plant:")
    for item in summary.turnaround_by_plant:
        print(f"   - {item.plant}: {format_duration_ms(item.average_time)} ({item.count} approved)")

    print("\nAverage review turnaround by level:")
    for level in (2, 3, 4, 5):
        result = calculate_average_turnaround_time(records, TurnaroundFilters(plant=plant, level=level))
        print(f"   - Level {level}: {format_duration_ms(result.average)} ({result.count} measured)")

    print("\nRequestors:")
    for item in summary.requestor_performance:
        print(f"   - {item.username}: {item.count} approved, avg {format_duration_ms(item.average_time)}")

    if summary.expired_ids:
        print(f"\n[!] {len(summary.expired_ids)} QAP(s) past the level 2 deadline:")
        for qap_id in summary.expired_ids:
            print(f"   - {qap_id}")


def main():
    parser = argparse.ArgumentParser(description="QAP turnaround report")
    parser.add_argument("--plant", default="all", help="Plant code, or 'all'")
    parser.add_argument("--days", type=int, default=30, help="Look-back window in days")
    args = parser.parse_args()

    status = health_check()
    if status["status"] != "healthy":
        print(f"[X] MongoDB unavailable: {status.get('error')}")
        sys.exit(1)

    try:
        print_report(args.plant, args.days)
    finally:
        close_connection()


if __name__ == "__main__":
    main()
