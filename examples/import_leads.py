#!/usr/bin/env python3
"""
Example: Import a scraper export and walk one lead through the pipeline.

This script demonstrates:
1. Previewing and committing a CSV lead import
2. Re-importing the same file (everything is a duplicate)
3. Opening a deal for the hottest lead and moving it to 'won'
4. Reading the dashboard numbers back from the store

Usage:
    python examples/import_leads.py [path/to/export.csv]

Without an argument a small built-in export is used. Data is written to a
temporary directory unless CRM_STORAGE_DIR is set.
"""

import os
import sys
import tempfile
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from dotenv import load_dotenv

# Load environment variables
env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from autobrand_crm import JsonFileStorage, LeadImporter, PipelineEngine, open_store
from autobrand_crm.utils import format_currency
from autobrand_crm.views import dashboard_kpis, hot_leads, stage_summary


SAMPLE_EXPORT = '''Display Name,Login,Business Email,Followers,Avg Viewers,Lead Score,Primary Game,Description
NovaPlays,novaplays,nova@example.com,15000,120,85,Valorant,"Chill FPS, late nights"
"Smith, Bob",bobsmith,bob@example.com,4200,35,62,Minecraft,Builds and chats
QuietRiver,quietriver,,800,12,31,Stardew Valley,"Cozy games, ""no rage"""
,,,50,0,10,,
'''


def main():
    """Run the example import and pipeline walkthrough."""
    print("=" * 60)
    print("AutoBrand CRM Import Example")
    print("=" * 60)

    if len(sys.argv) > 1:
        csv_path = Path(sys.argv[1])
        csv_text = csv_path.read_text(encoding='utf-8')
        filename = csv_path.name
    else:
        csv_text = SAMPLE_EXPORT
        filename = 'sample_export.csv'

    storage_dir = os.getenv('CRM_STORAGE_DIR') or tempfile.mkdtemp(prefix='autobrand-crm-')
    store = open_store(JsonFileStorage(storage_dir))
    print(f"\nStore file: {Path(storage_dir) / (store.key + '.json')}")

    importer = LeadImporter(store)
    engine = PipelineEngine(store)

    # =====================================================================
    # Preview and commit
    # =====================================================================
    print("\n" + "-" * 60)
    print(f"Previewing {filename}...")
    print("-" * 60)

    preview = importer.preview(csv_text, filename=filename)
    print(f"  {preview.summary}")

    result = importer.commit(preview.leads)
    print(f"  {result.message}")

    # =====================================================================
    # Re-import
    # =====================================================================
    print("\n" + "-" * 60)
    print("Importing the same file again...")
    print("-" * 60)

    again = importer.import_leads(csv_text, filename=filename)
    print(f"  {again.message}")

    # =====================================================================
    # Close a deal
    # =====================================================================
    top = hot_leads(store, limit=1)
    if not top:
        print("\nNo hot leads to work with.")
        return

    lead = top[0]
    print("\n" + "-" * 60)
    print(f"Opening a deal for {lead.name} (score {lead.score})...")
    print("-" * 60)

    deal = engine.create_deal_from_lead(lead.id, service_id='svc-2')
    for stage in ('qualified', 'proposal', 'negotiation', 'won'):
        transition = engine.move_deal(deal.id, stage)
        print(f"  -> {stage}" + (f"  ({transition.message})" if transition.message else ""))

    if transition.client:
        print(f"\n  New client: {transition.client.name} ({transition.client.status.value})")

    # =====================================================================
    # Summary
    # =====================================================================
    print("\n" + "=" * 60)
    print("Dashboard")
    print("=" * 60)

    kpis = dashboard_kpis(store)
    print(f"  Leads: {kpis.total_leads}")
    print(f"  Open deals: {kpis.active_deals} ({format_currency(kpis.active_deal_value)})")
    print(f"  Pending tasks: {kpis.pending_tasks}")
    for summary in stage_summary(store):
        print(f"  {summary.stage.label:<12} {summary.count:>3}  {format_currency(summary.total_value)}")

    print("\nRecent activity:")
    for activity in store.activities[:5]:
        print(f"  - {activity.text}")


if __name__ == "__main__":
    main()
