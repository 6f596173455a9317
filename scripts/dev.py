#!/usr/bin/env python3
"""
Development script for Daily Split Tracker
Run with: python scripts/dev.py [command] (after pip install -e .)
"""

import argparse
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent


def run_command(cmd: list[str], description: str = ""):
    """Run a command and handle errors"""
    if description:
        print(f"🚀 {description}")

    try:
        result = subprocess.run(cmd, check=True, cwd=ROOT)
        return result.returncode == 0
    except subprocess.CalledProcessError as e:
        print(f"❌ Command failed: {' '.join(cmd)}")
        print(f"Error: {e}")
        return False


def serve():
    """Start the development server"""
    print("🏋️ Starting Daily Split Tracker development server...")
    run_command(
        ["uvicorn", "main:app", "--reload", "--host", "0.0.0.0", "--port", "8000"],
        "Starting FastAPI server with hot reload",
    )


def test():
    """Run tests"""
    run_command(["pytest", "-v"], "Running tests")


def format_code():
    """Format code with black and isort"""
    run_command(["black", "."], "Formatting code with black")
    run_command(["isort", "."], "Organizing imports with isort")


def lint():
    """Run linting checks"""
    run_command(["flake8", "."], "Running flake8 linting")
    run_command(["mypy", "."], "Running mypy type checking")


def check():
    """Run all checks (format, lint, test)"""
    print("🔍 Running all checks...")
    success = True
    success &= run_command(["black", "--check", "."], "Checking code formatting")
    success &= run_command(
        ["isort", "--check-only", "."], "Checking import organization"
    )
    success &= run_command(["flake8", "."], "Running linting")
    success &= run_command(["mypy", "."], "Running type checking")
    success &= run_command(["pytest", "-v"], "Running tests")

    if success:
        print("✅ All checks passed!")
    else:
        print("❌ Some checks failed!")
        sys.exit(1)


def seed():
    """Upsert the default exercise catalog into the configured store"""
    from main import build_store
    from services.exercise_catalog import DEFAULT_EXERCISES
    from tracker.config import configure_logging

    configure_logging()
    saved = build_store().upsert_exercises(DEFAULT_EXERCISES)
    groups = sorted({e.muscle_group for e in saved})
    print(f"🌱 Seeded {len(saved)} exercises across {len(groups)} muscle groups")
    for group in groups:
        print(f"  - {group}: {sum(1 for e in saved if e.muscle_group == group)}")


def db_migrate():
    """Print where the database schema lives"""
    print("🗄️ Running database migrations...")
    print("Please run the SQL schema manually in your Supabase dashboard:")
    print("📄 File: tracker/supabase_client.py (module docstring)")


def main():
    parser = argparse.ArgumentParser(description="Daily Split Tracker development tools")
    parser.add_argument(
        "command",
        choices=[
            "serve",
            "test",
            "format",
            "lint",
            "check",
            "seed",
            "db-migrate",
        ],
        help="Command to run",
    )

    args = parser.parse_args()

    commands = {
        "serve": serve,
        "test": test,
        "format": format_code,
        "lint": lint,
        "check": check,
        "seed": seed,
        "db-migrate": db_migrate,
    }

    commands[args.command]()


if __name__ == "__main__":
    main()
