# =============================================================================
# scripts/check_supabase_schema.py
# Check the HACCP tables in Supabase, or print the SQL that creates them
# =============================================================================
"""
Usage:
    python scripts/check_supabase_schema.py          # check tables and bucket
    python scripts/check_supabase_schema.py --sql    # print the schema SQL

Credentials come from .streamlit/secrets.toml, falling back to the
SUPABASE_URL / SUPABASE_ANON_KEY environment variables.
"""
from __future__ import annotations
import sys
import io
from pathlib import Path

sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import toml

SCHEMA_SQL = """
create table if not exists haccp_logs (
    id text primary key,
    date text not null unique,
    data jsonb not null
);

create table if not exists haccp_traceability (
    id text primary key,
    date text not null,
    item_name text not null,
    lot_number text,
    expiry_date text,
    photo_url text
);

create table if not exists haccp_inventory (
    id text primary key,
    name text not null,
    current_quantity double precision not null default 0,
    unit text,
    min_threshold double precision not null default 0,
    category text,
    last_delivery_temp double precision
);

create table if not exists haccp_movements (
    id text primary key,
    item_id text not null,
    item_name text not null,
    type text not null check (type in ('IN', 'OUT')),
    quantity double precision not null,
    date text not null,
    reason text,
    temperature double precision
);

-- Storage: create a PUBLIC bucket named 'traceability-photos'
-- (Dashboard > Storage > New bucket) for receipt label photos.
"""


def load_secrets() -> dict:
    secrets_path = project_root / ".streamlit" / "secrets.toml"
    if not secrets_path.exists():
        return {}
    return toml.load(secrets_path)


def main():
    if "--sql" in sys.argv:
        print(SCHEMA_SQL)
        return 0

    from haccp_core.config import load_settings
    from haccp_core.data.supabase_client import (
        DAILY_LOGS_TABLE,
        INVENTORY_TABLE,
        MOVEMENTS_TABLE,
        PHOTO_BUCKET,
        TRACEABILITY_TABLE,
        UNDEFINED_TABLE_CODE,
        get_supabase_client,
    )

    settings = load_settings(secrets=load_secrets())
    client = get_supabase_client(settings)
    if client is None:
        print("ERROR: Missing Supabase credentials.")
        print("Configure [supabase] url/key in .streamlit/secrets.toml")
        return 1

    tables = [DAILY_LOGS_TABLE, TRACEABILITY_TABLE, INVENTORY_TABLE, MOVEMENTS_TABLE]
    missing = []

    for table in tables:
        print(f"\n{'='*60}")
        print(f"Table: {table}")
        print(f"{'='*60}")
        try:
            # One row is enough to see the column structure
            response = client.table(table).select("*").limit(1).execute()
            if response.data:
                row = response.data[0]
                print("Columns:")
                for key, value in row.items():
                    print(f"  - {key}: {type(value).__name__} = {repr(value)[:50]}")
            else:
                print("  (table exists, no data found)")
        except Exception as e:
            if str(getattr(e, "code", "")) == UNDEFINED_TABLE_CODE:
                print("  MISSING")
                missing.append(table)
            else:
                print(f"  Error: {e}")

    print(f"\n{'='*60}")
    print(f"Bucket: {PHOTO_BUCKET}")
    print(f"{'='*60}")
    try:
        client.storage.get_bucket(PHOTO_BUCKET)
        print("  OK")
    except Exception as e:
        print(f"  Not reachable: {e}")

    if missing:
        print(f"\n{len(missing)} table(s) missing. Run the SQL below in the Supabase SQL editor:")
        print(SCHEMA_SQL)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
