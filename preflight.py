"""
Pre-flight checks for the Catan score bot.

Checks environment variables, required packages and (optionally) that the
Google spreadsheet is reachable before the bot connects to Discord.
"""

import asyncio
import importlib.util
import json
import os


def print_test_header(test_name):
    print(f"\n{'='*60}")
    print(f"Testing: {test_name}")
    print('='*60)


def print_success(message):
    print(f"[OK] {message}")


def print_error(message):
    print(f"[FAIL] {message}")


def print_info(message):
    print(f"  - {message}")


REQUIRED_ENV = ("DISCORD_TOKEN", "SCORING_CHANNEL_ID")
# Without these the bot runs, but cannot save games / publish summaries.
RECOMMENDED_ENV = ("GUILD_ID", "LEADERBOARD_CHANNEL_ID", "SHEET_ID", "GOOGLE_SERVICE_ACCOUNT_JSON")


def check_environment_variables() -> bool:
    print_test_header("Environment Variables")

    from dotenv import load_dotenv
    load_dotenv()

    ok = True
    for name in REQUIRED_ENV:
        if os.getenv(name):
            print_success(f"{name} is set")
        else:
            print_error(f"{name} not found in environment variables")
            print_info(f"Please add {name} to your .env file")
            ok = False

    for name in RECOMMENDED_ENV:
        if os.getenv(name):
            print_success(f"{name} is set")
        else:
            print_info(f"{name} is not set (related features will report 'unavailable')")

    raw = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON")
    if raw:
        try:
            info = json.loads(raw)
            if not info.get("client_email") or not info.get("private_key"):
                print_error("GOOGLE_SERVICE_ACCOUNT_JSON lacks client_email / private_key")
                ok = False
            else:
                print_success("GOOGLE_SERVICE_ACCOUNT_JSON parses")
        except json.JSONDecodeError as e:
            print_error(f"GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON: {e}")
            ok = False

    return ok


def check_required_packages() -> bool:
    print_test_header("Required Python Packages")

    required_packages = {
        'discord': 'discord.py',
        'aiohttp': 'aiohttp',
        'dotenv': 'python-dotenv',
        'pydantic': 'pydantic',
        'fastapi': 'fastapi',
        'uvicorn': 'uvicorn',
        'google.auth': 'google-auth',
        'requests': 'requests',
    }

    all_installed = True
    for module_name, package_name in required_packages.items():
        try:
            spec = importlib.util.find_spec(module_name)
        except ModuleNotFoundError:
            spec = None

        if spec is not None:
            print_success(f"{package_name} is installed")
            continue

        print_error(f"{package_name} is NOT installed")
        print_info("Install with: pip install -e .")
        all_installed = False

    return all_installed


def check_sheets_connection() -> bool:
    print_test_header("Google Sheets Connection")

    if not os.getenv("SHEET_ID") or not os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON"):
        print_info("Skipped (Sheets not configured)")
        return True

    from app.errors import BotError
    from storage.sheets import SheetsManager

    async def _run():
        manager = SheetsManager.from_config()
        return await manager.client.get_title()

    try:
        title = asyncio.run(_run())
    except BotError as e:
        print_error(f"Sheets check failed: {e}")
        return False
    print_success(f"Connected to sheet: {title}")
    return True


def run_all_checks() -> bool:
    results = [
        check_environment_variables(),
        check_required_packages(),
    ]
    # Network check only makes sense once config and packages are fine.
    if all(results):
        results.append(check_sheets_connection())
    return all(results)
