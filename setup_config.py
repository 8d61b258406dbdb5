#!/usr/bin/env python3
"""Interactive setup helper for Agenda Sync configuration."""

import sys
from pathlib import Path


def main():
    print("\n" + "=" * 70)
    print("📅 Agenda Sync - Configuration Setup")
    print("=" * 70 + "\n")

    env_file = Path(".env")

    if env_file.exists():
        response = input("⚠️  .env file already exists. Overwrite? (y/N): ")
        if response.lower() != 'y':
            print("Setup cancelled.")
            return

    print("Let's configure your Google Calendar settings.\n")
    print("You'll need an OAuth client (type 'Web application') first:")
    print("https://console.cloud.google.com/apis/credentials")
    print()

    print("─" * 70)
    print("Google OAuth Configuration")
    print("─" * 70)

    client_id = input("\nGoogle Client ID: ").strip()
    client_secret = input("Google Client Secret: ").strip()
    app_url = input("Application URL [http://localhost:8000]: ").strip() or "http://localhost:8000"
    redirect_uri = f"{app_url.rstrip('/')}/callback"

    print("\n" + "─" * 70)
    print("Sync Configuration")
    print("─" * 70)

    timezone = input("\nReference timezone [Europe/Paris]: ").strip() or "Europe/Paris"
    database_path = input("Database path [.agenda_sync.db]: ").strip() or ".agenda_sync.db"

    env_content = f"""# Google OAuth Configuration
GOOGLE_CLIENT_ID={client_id}
GOOGLE_CLIENT_SECRET={client_secret}
GOOGLE_REDIRECT_URI={redirect_uri}
GOOGLE_REQUEST_TIMEOUT=30

# Application
APP_URL={app_url}
DATABASE_PATH={database_path}
REFERENCE_TIMEZONE={timezone}

# Logging Configuration
LOG_LEVEL=INFO
LOG_FILE=agenda_sync.log

# Sync Configuration
SYNC_LOOKBACK_DAYS=30
TOKEN_REFRESH_MARGIN_MINUTES=5
DEDUP_TOLERANCE_SECONDS=60
SYNC_PAGE_SIZE=250
SYNC_LOCK_TIMEOUT_SECONDS=600
"""

    with open(".env", "w") as f:
        f.write(env_content)

    print("\n" + "=" * 70)
    print("✅ Configuration saved to .env")
    print("=" * 70)

    print("\n📋 Next steps:")
    print("1. Enable the Google Calendar API for your project")
    print(f"2. Add {redirect_uri} as an authorized redirect URI")
    print("3. Run: agenda-sync --serve")
    print()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nSetup cancelled.")
        sys.exit(0)
