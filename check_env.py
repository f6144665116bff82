#!/usr/bin/env python3
"""Check the .env file and report which optional services are configured."""

from pathlib import Path
import os
import sys

TEMPLATE = """# Saved routes (optional). Without these, routes are kept only in local sessions.
RO_SUPABASE_URL=https://your-project-id.supabase.co
RO_SUPABASE_KEY=your-anon-key-here

# API
RO_API_PREFIX=/api
# Comma-separated or JSON array: ["http://localhost:5173"]
# RO_FRONTEND_ALLOWED_ORIGINS=http://localhost:5173

# Local session storage
RO_DATA_ROOT=./data

# Routing and geocoding services
RO_OSRM_BASE_URL=https://router.project-osrm.org
RO_GEOCODER_BASE_URL=https://nominatim.openstreetmap.org
RO_GEOCODER_COUNTRY_CODES=cz
"""

SECRET_KEYS = ("RO_SUPABASE_KEY",)


def _mask(line: str) -> str:
    name, _, value = line.partition("=")
    value = value.strip()
    if name.strip() in SECRET_KEYS and len(value) > 20:
        return f"{name}={value[:20]}...{value[-10:]}"
    return line


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Route Optimizer Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Edit it and restart the backend.")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    for name in ("RO_SUPABASE_URL", "RO_SUPABASE_KEY", "RO_OSRM_BASE_URL"):
        value = os.getenv(name)
        if value:
            print(f"✅ {name} (from environment): {value[:20]}...")
        else:
            print(f"ℹ️  {name} not set in environment (the .env file may still provide it)")
    print()

    try:
        sys.path.insert(0, str(project_root / "src"))
        from route_optimizer.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        return

    print(f"OSRM:      {settings.osrm_base_url or 'not configured (local sequencing only)'}")
    print(f"Geocoder:  {settings.geocoder_base_url} (countries: {settings.geocoder_country_codes or 'any'})")
    print(f"Data root: {settings.data_root}")
    if settings.supabase_url and settings.supabase_key:
        print("✅ Saved routes: Supabase is configured")
    else:
        print("ℹ️  Saved routes: Supabase is NOT configured; sharing and cloud sync are disabled")


if __name__ == "__main__":
    main()
