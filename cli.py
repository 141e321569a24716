import argparse
import asyncio
import json
import logging
import os
import shutil

from algorithms import WeightConverter
from config import load_settings
from db import (
    AsyncDatabase,
    AsyncTemplateRepository,
    AsyncWorkoutRepository,
    Database,
    InvalidTransitionError,
    NotFoundError,
)
from models import TemplateCategory
from rest_api import workout_to_csv
from seed_sample_data import seed, seed_templates
from stats_service import StatisticsService

logger = logging.getLogger(__name__)


async def export_workouts(db_path: str, user_id: str, fmt: str, output_dir: str = ".") -> list[str]:
    """Write one file per workout of ``user_id`` and return the paths."""
    paths = []
    async with AsyncDatabase(db_path) as store:
        repo = AsyncWorkoutRepository(store)
        for workout in await repo.get_workouts(user_id):
            if fmt == "csv":
                data = workout_to_csv(workout)
            else:
                data = json.dumps(workout.to_dict(), indent=2)
            out_path = os.path.join(output_dir, f"workout_{workout.workout_id}.{fmt}")
            with open(out_path, "w", encoding="utf-8") as f:
                f.write(data)
            paths.append(out_path)
    return paths


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


async def list_workouts(db_path: str, user_id: str, status: str | None, limit: int | None) -> list[str]:
    async with AsyncDatabase(db_path) as store:
        repo = AsyncWorkoutRepository(store)
        workouts = await repo.get_workouts(user_id, status=status, limit=limit)
    return [
        f"{w.workout_id}\t{w.created_at:%Y-%m-%d %H:%M}\t{w.status.value}\t{w.name}\t{w.total_volume:.0f}kg"
        for w in workouts
    ]


async def show_stats(db_path: str, user_id: str, unit: str) -> dict:
    async with AsyncDatabase(db_path) as store:
        service = StatisticsService(AsyncWorkoutRepository(store), unit)
        data = await service.overview(user_id)
        data["volume_by_body_part"] = await service.workouts.get_volume_by_body_part(user_id)
    return data


async def change_status(db_path: str, action: str, workout_id: str) -> None:
    async with AsyncDatabase(db_path) as store:
        repo = AsyncWorkoutRepository(store)
        handler = {
            "start": repo.start_workout,
            "complete": repo.complete_workout,
            "cancel": repo.cancel_workout,
        }[action]
        await handler(workout_id)


async def list_templates(db_path: str, user_id: str, category: str | None) -> list[str]:
    async with AsyncDatabase(db_path) as store:
        repo = AsyncTemplateRepository(store)
        templates = await repo.get_templates(user_id, category=category)
    return [
        f"{t.template_id}\t{t.category_name}\t{t.difficulty_name}\t{t.usage_count}\t{t.name}"
        for t in templates
    ]


async def use_template(db_path: str, template_id: str, user_id: str, name: str | None) -> str:
    """Save a planned workout built from ``template_id`` and return its id."""
    async with AsyncDatabase(db_path) as store:
        templates = AsyncTemplateRepository(store)
        workout = await templates.create_workout_from_template(
            template_id, user_id, name=name
        )
        await AsyncWorkoutRepository(store).save_workout(workout)
    return workout.workout_id


async def template_from_workout(db_path: str, workout_id: str, name: str, category: str) -> str:
    async with AsyncDatabase(db_path) as store:
        workout = await AsyncWorkoutRepository(store).get_workout(workout_id)
        if workout is None:
            raise NotFoundError(f"workout not found: {workout_id}")
        template = await AsyncTemplateRepository(store).create_template_from_workout(
            workout, name, category=category
        )
    return template.template_id


async def health(db_path: str) -> dict:
    async with AsyncDatabase(db_path) as store:
        return await store.info()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Workout log utility commands")
    parser.add_argument("--yaml", default="settings.yaml")
    parser.add_argument("--db", default=None, help="override the configured database")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init")
    sub.add_parser("demo")
    sub.add_parser("health")
    sub.add_parser("vacuum")

    lst = sub.add_parser("list")
    lst.add_argument("--user")
    lst.add_argument("--status", choices=["planned", "inProgress", "completed", "cancelled"])
    lst.add_argument("--limit", type=int)

    stats = sub.add_parser("stats")
    stats.add_argument("--user")

    for action in ("start", "complete", "cancel"):
        p = sub.add_parser(action)
        p.add_argument("workout_id")

    exp = sub.add_parser("export")
    exp.add_argument("--user")
    exp.add_argument("--fmt", choices=["csv", "json"], default="json")
    exp.add_argument("--out", default=".")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")

    tpl = sub.add_parser("templates")
    tpl_sub = tpl.add_subparsers(dest="tpl_cmd", required=True)
    tpl_sub.add_parser("seed")
    tpl_list = tpl_sub.add_parser("list")
    tpl_list.add_argument("--user")
    tpl_list.add_argument("--category", choices=[c.value for c in TemplateCategory])
    tpl_use = tpl_sub.add_parser("use")
    tpl_use.add_argument("template_id")
    tpl_use.add_argument("--user")
    tpl_use.add_argument("--name")
    tpl_save = tpl_sub.add_parser("from-workout")
    tpl_save.add_argument("workout_id")
    tpl_save.add_argument("--name", required=True)
    tpl_save.add_argument("--category", choices=[c.value for c in TemplateCategory], default="custom")

    conv = sub.add_parser("convert")
    conv.add_argument("--weight", type=float, required=True)
    conv.add_argument("--unit", choices=["kg", "lb"], required=True)

    args = parser.parse_args(argv)
    settings = load_settings(args.yaml)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    db_path = args.db or settings.db_path
    user_id = getattr(args, "user", None) or settings.user_id

    if args.cmd == "init":
        AsyncDatabase(db_path)
        print(f"Database ready at {db_path}")
    elif args.cmd == "demo":
        count = asyncio.run(seed(db_path))
        print("Demo data inserted" if count else "Database already contains workouts")
    elif args.cmd == "health":
        print(json.dumps(asyncio.run(health(db_path)), indent=2))
    elif args.cmd == "vacuum":
        Database(db_path).vacuum()
        print(f"Vacuumed {db_path}")
    elif args.cmd == "list":
        for line in asyncio.run(list_workouts(db_path, user_id, args.status, args.limit)):
            print(line)
    elif args.cmd == "stats":
        data = asyncio.run(show_stats(db_path, user_id, settings.weight_unit))
        print(json.dumps(data, indent=2))
    elif args.cmd in ("start", "complete", "cancel"):
        try:
            asyncio.run(change_status(db_path, args.cmd, args.workout_id))
        except (NotFoundError, InvalidTransitionError) as e:
            logger.error("%s failed: %s", args.cmd, e)
            return 1
        print(f"{args.workout_id}: {args.cmd} ok")
    elif args.cmd == "export":
        os.makedirs(args.out, exist_ok=True)
        paths = asyncio.run(export_workouts(db_path, user_id, args.fmt, args.out))
        print(f"Exported {len(paths)} workouts to {args.out}")
    elif args.cmd == "backup":
        backup_db(db_path, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, db_path)
    elif args.cmd == "templates":
        if args.tpl_cmd == "seed":
            added = asyncio.run(seed_templates(db_path))
            print(f"Added {added} default templates" if added else "Default templates already present")
        elif args.tpl_cmd == "list":
            for line in asyncio.run(list_templates(db_path, user_id, args.category)):
                print(line)
        else:
            try:
                if args.tpl_cmd == "use":
                    new_id = asyncio.run(use_template(db_path, args.template_id, user_id, args.name))
                else:
                    new_id = asyncio.run(
                        template_from_workout(db_path, args.workout_id, args.name, args.category)
                    )
            except NotFoundError as e:
                logger.error("templates %s failed: %s", args.tpl_cmd, e)
                return 1
            print(new_id)
    elif args.cmd == "convert":
        if args.unit == "kg":
            print(f"{args.weight} kg = {WeightConverter.kg_to_lb(args.weight)} lb")
        else:
            print(f"{args.weight} lb = {WeightConverter.lb_to_kg(args.weight)} kg")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
