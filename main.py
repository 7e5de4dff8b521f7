"""Main entry point for Dealership Commission Reports"""
import argparse
import logging
import sys

from commission_report.collections_store import (
    CollectionsBonusStore,
    collections_inputs,
    select_collections_bonus,
    set_collections_lock,
)
from commission_report.data_loader import SaleLoader
from commission_report.date_windows import (
    build_week_buckets,
    find_week_bucket,
    parse_sale_date,
    today_in_report_timezone,
    week_key,
)
from commission_report.manual_commissions import ManualCommissionStore, parse_manual_commissions
from commission_report.report_generator import CommissionReportExporter
from commission_report.report_log import ReportLog
from commission_report.snapshot_builder import build_snapshot


def main():
    parser = argparse.ArgumentParser(description='Generate the weekly commission report')
    parser.add_argument('input_file', help='Path to sales export (CSV, Excel or JSON)')
    parser.add_argument('--week', '-w', default=None,
                        help='Any date in the commission week (default: most recent week)')
    parser.add_argument('--collections-bonus', '-b', type=float, default=None,
                        help='Collections bonus for Key this week')
    parser.add_argument('--lock', action='store_true', help='Lock the collections bonus selection')
    parser.add_argument('--unlock', action='store_true', help='Unlock the collections bonus selection')
    parser.add_argument('--log', action='store_true', help='Log the finished report')
    parser.add_argument('--draft', action='store_true',
                        help='Export even if the collections bonus is not locked')
    parser.add_argument('--data-dir', default='data', help='Local storage directory')
    parser.add_argument('--output', '-o', default=None, help='Output file path (.xlsx or .csv)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose logging')

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    # Load sales
    sales = SaleLoader.load(args.input_file)
    print(f"Loaded {len(sales)} sales")

    # Pick the commission week
    buckets = build_week_buckets(sales, anchor=today_in_report_timezone())
    selected_key = None
    if args.week:
        week_date = parse_sale_date(args.week)
        if week_date is None:
            parser.error(f"Invalid week date: {args.week}")
        selected_key = week_key(week_date)
    week = find_week_bucket(buckets, selected_key)
    if week is None:
        print(f"No sales in the commission week starting {selected_key}")
        return 1

    # Collections bonus state
    store = CollectionsBonusStore(data_dir=args.data_dir)
    try:
        if args.unlock:
            set_collections_lock(store, week.key, False)
        if args.collections_bonus is not None:
            select_collections_bonus(store, week.key, args.collections_bonus)
        if args.lock:
            set_collections_lock(store, week.key, True)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    selections, locks = collections_inputs(store.get(week.key))

    manual = ManualCommissionStore(data_dir=args.data_dir).get(week.key)

    snapshot = build_snapshot(
        list(week.sales),
        {},
        week.start,
        week.end,
        collections_selections=selections,
        collections_locks=locks,
        all_sales=sales,
        manual_commissions=parse_manual_commissions(manual),
    )

    # Print summary
    print(f"\n=== Commission Report: {week.label} ===")
    for person in snapshot.salespeople:
        print(f"{person.salesperson}: {len(person.rows)} rows, "
              f"commission ${person.total_adjusted_commission:,.2f}")
        if person.is_house:
            print(f"  Collections bonus: ${person.collections_bonus or 0:,.2f}")
            print(f"  Weekly sales: {person.weekly_sales_count} deals, "
                  f"{person.weekly_sales_count_over_threshold} over → ${person.weekly_sales_bonus:,.2f}")
            print(f"  Total payout: ${person.total_payout:,.2f}")

    if not snapshot.totals.collections_complete:
        print("\n⚠️ Select and lock a collections bonus for Key before logging or exporting.")

    # Export
    output_path = args.output or f"output/reports/commission_report_{snapshot.period_end}.xlsx"
    exporter = CommissionReportExporter(snapshot, require_complete=not args.draft)
    try:
        if output_path.lower().endswith('.csv'):
            exporter.export_csv(output_path)
        else:
            exporter.export_excel(output_path)
        print(f"Report saved to: {output_path}")

        if args.log:
            entry = ReportLog(data_dir=args.data_dir).log_report(snapshot)
            print(f"Report logged: {entry['id']}")
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
