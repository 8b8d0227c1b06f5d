import argparse
import csv
import json
import logging
import os
import shutil

from app import RepQuestApp
from config import YamlConfig
from db import UserDataRepository
from models import UserData


def history_rows(data: UserData) -> list[dict]:
    """Flatten lift history into one row per set."""
    names = {lift.id: lift.name for lift in data.lifts}
    rows = []
    for lift_id, records in data.lift_history.items():
        for record in records:
            for number, s in enumerate(record.sets, start=1):
                rows.append(
                    {
                        "date": record.date,
                        "lift_id": lift_id,
                        "lift": names.get(lift_id, lift_id),
                        "set": number,
                        "weight": s.weight,
                        "reps": s.reps,
                    }
                )
    rows.sort(key=lambda r: (r["date"], r["lift_id"], r["set"]))
    return rows


def export_history(db_path: str, fmt: str, output_dir: str = ".") -> str:
    data = UserDataRepository(db_path).load()
    if data is None:
        raise SystemExit(f"No training data in {db_path}")
    if fmt == "json":
        out_path = os.path.join(output_dir, "repquest_history.json")
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(data.to_json_dict()["liftHistory"], f, indent=2)
    else:
        out_path = os.path.join(output_dir, "repquest_history.csv")
        with open(out_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(
                f, fieldnames=["date", "lift_id", "lift", "set", "weight", "reps"]
            )
            writer.writeheader()
            writer.writerows(history_rows(data))
    return out_path


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def _open_app(args: argparse.Namespace, refresh: bool) -> RepQuestApp:
    settings = YamlConfig(args.config).settings()
    return RepQuestApp(db_path=args.db, settings=settings, refresh_catalog=refresh)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="RepQuest utility commands")
    parser.add_argument("--config", default="settings.yaml")
    parser.add_argument("--db", default=None, help="overrides db_path from the config")
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--fmt", choices=["csv", "json"], default="csv")
    exp.add_argument("--out", default=".")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")

    syn = sub.add_parser("sync")
    exhausted = syn.add_mutually_exclusive_group()
    exhausted.add_argument("--purge-exhausted", action="store_true",
                           help="drop queued items that hit the retry cap")
    exhausted.add_argument("--requeue-exhausted", action="store_true",
                           help="reset the attempt count of capped items before draining")
    sub.add_parser("refresh-catalog")
    sub.add_parser("status")

    args = parser.parse_args(argv)
    settings = YamlConfig(args.config).settings()
    logging.basicConfig(level=settings.log_level.upper())
    db_path = args.db or settings.db_path

    if args.cmd == "export":
        print(export_history(db_path, args.fmt, args.out))
    elif args.cmd == "backup":
        backup_db(db_path, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, db_path)
    elif args.cmd == "sync":
        sync = _open_app(args, refresh=False).sync
        purged = sync.purge_exhausted() if args.purge_exhausted else 0
        requeued = sync.requeue_exhausted() if args.requeue_exhausted else 0
        result = sync.drain()
        result.update(purged=purged, requeued=requeued)
        print(json.dumps(result))
    elif args.cmd == "refresh-catalog":
        app = _open_app(args, refresh=True)
        print(f"Catalog {app.catalog_status}: {len(app.catalog.lifts())} lifts")
    elif args.cmd == "status":
        print(json.dumps(_open_app(args, refresh=False).status(), indent=2))


if __name__ == "__main__":
    main()
