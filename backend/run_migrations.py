#!/usr/bin/env python3
"""
Database migration runner for Supabase.

Applies the SQL files in migrations/ (profiles, Telegram linking tokens,
dashboard sessions, usage and audit logs) in filename order, recording
each in a tracking table.

Usage:
    python run_migrations.py                    # Run pending migrations
    python run_migrations.py --status           # Show migration status
    python run_migrations.py --dry-run          # Show what would run
    python run_migrations.py --force 003 --yes  # Re-run a migration

Configuration:
    Set SUPABASE_DB_URL to the Postgres connection URI from the Supabase
    dashboard (Settings → Database → Connection string → URI).
"""

import argparse
import hashlib
import sys
from dataclasses import dataclass
from pathlib import Path

import psycopg2
from psycopg2 import sql
from rich.console import Console
from rich.table import Table

from shared.config import get_settings

console = Console()

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
MIGRATIONS_TABLE = "_clixen_migrations"


@dataclass(frozen=True)
class Migration:
    name: str
    path: Path
    checksum: str

    @property
    def sql(self) -> str:
        return self.path.read_text()


def checksum_of(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()[:16]


def load_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """All migration files, ordered by name."""
    if not directory.exists():
        console.print(f"[yellow]Warning:[/yellow] Migrations directory not found: {directory}")
        return []
    return [
        Migration(path.name, path, checksum_of(path.read_text()))
        for path in sorted(directory.glob("*.sql"))
    ]


def get_db_connection():
    """Get a connection to the Supabase PostgreSQL database."""
    settings = get_settings()

    if not settings.supabase_db_url:
        console.print("[red]Error:[/red] SUPABASE_DB_URL is not set.")
        console.print("Find it in Supabase Dashboard → Settings → Database → Connection string → URI")
        sys.exit(1)

    try:
        return psycopg2.connect(settings.supabase_db_url)
    except psycopg2.Error as e:
        console.print(f"[red]Database connection failed:[/red] {e}")
        sys.exit(1)


def ensure_migrations_table(conn) -> None:
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL(
                """
                CREATE TABLE IF NOT EXISTS {} (
                    id SERIAL PRIMARY KEY,
                    name VARCHAR(255) NOT NULL UNIQUE,
                    checksum VARCHAR(64) NOT NULL,
                    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
                """
            ).format(sql.Identifier(MIGRATIONS_TABLE))
        )
    conn.commit()


def get_applied_migrations(conn) -> dict[str, dict]:
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("SELECT name, checksum, applied_at FROM {} ORDER BY name").format(
                sql.Identifier(MIGRATIONS_TABLE)
            )
        )
        return {
            row[0]: {"checksum": row[1], "applied_at": row[2]}
            for row in cur.fetchall()
        }


def pending_migrations(
    migrations: list[Migration], applied: dict[str, dict]
) -> list[Migration]:
    """Migrations not yet applied. Changed files are reported, not re-run."""
    pending = []
    for migration in migrations:
        if migration.name not in applied:
            pending.append(migration)
        elif applied[migration.name]["checksum"] != migration.checksum:
            console.print(
                f"[yellow]Warning:[/yellow] Migration {migration.name} has changed since it was applied!"
            )
    return pending


def run_migration(conn, migration: Migration, dry_run: bool = False) -> None:
    """Apply one migration and record it, in a single transaction."""
    if dry_run:
        console.print(f"[cyan]Would run:[/cyan] {migration.name}")
        return

    console.print(f"[blue]Running:[/blue] {migration.name}...")
    try:
        with conn.cursor() as cur:
            cur.execute(migration.sql)
            cur.execute(
                sql.SQL("INSERT INTO {} (name, checksum) VALUES (%s, %s)").format(
                    sql.Identifier(MIGRATIONS_TABLE)
                ),
                (migration.name, migration.checksum),
            )
        conn.commit()
        console.print(f"[green]✓[/green] {migration.name} applied")
    except psycopg2.Error as e:
        conn.rollback()
        console.print(f"[red]✗[/red] {migration.name} failed: {e}")
        raise


def show_status(applied: dict[str, dict], pending: list[Migration]) -> None:
    if not applied and not pending:
        console.print("[dim]No migrations found.[/dim]")
        return

    table = Table(title="Migration Status")
    table.add_column("Migration", style="cyan")
    table.add_column("Status")
    table.add_column("Applied At")
    table.add_column("Checksum")

    for name, info in applied.items():
        applied_at = info["applied_at"]
        table.add_row(
            name,
            "[green]Applied[/green]",
            applied_at.strftime("%Y-%m-%d %H:%M:%S") if applied_at else "",
            info["checksum"],
        )
    for migration in pending:
        table.add_row(migration.name, "[yellow]Pending[/yellow]", "", migration.checksum)

    console.print(table)


def find_migration(migrations: list[Migration], prefix: str) -> Migration:
    matches = [m for m in migrations if m.name.startswith(prefix)]
    if len(matches) != 1:
        names = ", ".join(m.name for m in matches) or "none"
        raise ValueError(f"Expected one migration matching '{prefix}', found: {names}")
    return matches[0]


def force_migration(conn, migration: Migration, assume_yes: bool = False) -> None:
    """Forget a migration's record and apply it again."""
    console.print(f"[yellow]Warning:[/yellow] Force re-running migration: {migration.name}")
    if not assume_yes and input("Continue? [y/N] ").lower() != "y":
        console.print("Aborted.")
        return

    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("DELETE FROM {} WHERE name = %s").format(sql.Identifier(MIGRATIONS_TABLE)),
            (migration.name,),
        )
    conn.commit()
    run_migration(conn, migration)


def main():
    parser = argparse.ArgumentParser(description="Run Clixen database migrations")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    parser.add_argument("--dry-run", action="store_true", help="Show what would run")
    parser.add_argument("--force", metavar="PREFIX", help="Re-run one migration (e.g. '003')")
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()

    console.print("[bold]Clixen Database Migrations[/bold]")
    migrations = load_migrations()

    conn = get_db_connection()
    try:
        ensure_migrations_table(conn)
        applied = get_applied_migrations(conn)
        pending = pending_migrations(migrations, applied)

        if args.status:
            show_status(applied, pending)
        elif args.force:
            try:
                migration = find_migration(migrations, args.force)
            except ValueError as e:
                console.print(f"[red]Error:[/red] {e}")
                sys.exit(1)
            force_migration(conn, migration, assume_yes=args.yes)
        elif not pending:
            console.print("[green]All migrations are up to date![/green]")
        else:
            console.print(f"Found {len(pending)} pending migration(s)")
            for migration in pending:
                run_migration(conn, migration, dry_run=args.dry_run)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
