"""Point-of-sale sales module.

Raw sources: Toteat vendor API (collection, orders and sales payloads) and
CSV exports uploaded by the restaurant.
Output: Report values consumed by src.report (XLSX/CSV) and the email notifier.

Processes:
- Normalize raw payloads into line-item candidates → normalize_records.py
- Parse uploaded CSV exports → clean_sales_csv.py
- Split tax → tax_split.py
- Categorize item names → classify_items.py
- Aggregate products and categories → aggregate_sales.py
- Summarize till collections → collection_summary.py
"""
