import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from .application.bootstrap import bootstrap_app
from .application.container import AppConfig
from .application.signals import Notification
from .domain.errors import CatalogError, IdentityError
from .domain.identity import ActorIdentity, IdentityValidator
from .domain.kinds import EntityKind
from .infrastructure.metrics import configure_metrics_logger, metrics

load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def load_app_config() -> AppConfig:
    api_url = os.getenv("CATALOG_API_URL", "").strip()
    if not api_url:
        raise RuntimeError("CATALOG_API_URL is empty. Put it to .env")
    api_key = os.getenv("CATALOG_API_KEY", "").strip()
    if not api_key:
        raise RuntimeError("CATALOG_API_KEY is empty. Put it to .env")
    config = AppConfig(
        api_url=api_url,
        api_key=api_key,
        actor_db_path=os.getenv("ACTOR_DB_PATH", "data/actor.db"),
        lookup_ttl_seconds=float(os.getenv("LOOKUP_TTL_SECONDS", "300")),
        lookup_timeout_seconds=float(os.getenv("LOOKUP_TIMEOUT_SECONDS", "5")),
        upload_max_bytes=int(os.getenv("UPLOAD_MAX_BYTES", str(5 * 1024 * 1024))),
        storage_bucket=os.getenv("STORAGE_BUCKET", "imagens").strip() or "imagens",
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "15")),
        metrics_log_path=os.getenv("METRICS_LOG_PATH", "").strip() or None,
    )
    logger.info(
        "Config loaded: api_url=%s, actor_db=%s, lookup_ttl=%s, lookup_timeout=%s, "
        "bucket=%s, upload_max_bytes=%s, metrics_log=%s",
        config.api_url,
        config.actor_db_path,
        config.lookup_ttl_seconds,
        config.lookup_timeout_seconds,
        config.storage_bucket,
        config.upload_max_bytes,
        config.metrics_log_path or "-",
    )
    return config


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Catalog administration: handles, rails and glass types.")
    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="List catalog records of one kind")
    list_cmd.add_argument("kind", choices=[kind.value for kind in EntityKind])

    delete_cmd = sub.add_parser("delete", help="Delete a catalog record")
    delete_cmd.add_argument("kind", choices=[kind.value for kind in EntityKind])
    delete_cmd.add_argument("record_id")

    sign_in = sub.add_parser("sign-in", help="Remember the acting user")
    sign_in.add_argument("--id", required=True, dest="user_id")
    sign_in.add_argument("--email", default="")
    sign_in.add_argument("--name", default="")

    sub.add_parser("sign-out", help="Forget the acting user")
    sub.add_parser("whoami", help="Show the acting user")
    return parser.parse_args(argv)


def print_notification(notification: Notification) -> None:
    print(f"[{notification.severity.value}] {notification.message}")


async def run(args: argparse.Namespace) -> int:
    config = load_app_config()
    if config.metrics_log_path:
        metrics.configure(configure_metrics_logger(config.metrics_log_path))

    async with bootstrap_app(config) as container:
        container.feed.on_notification(print_notification)

        if args.command == "list":
            kind = EntityKind.parse(args.kind)
            result = await container.repository(kind).list()
            if not result.success:
                print(result.message, file=sys.stderr)
                return 1
            print(container.presenter.listing(kind, result.data, degraded=result.degraded))
            return 0

        if args.command == "delete":
            result = await container.coordinator.delete(args.kind, args.record_id)
            return 0 if result.success else 1

        if args.command == "sign-in":
            try:
                actor = IdentityValidator().validate(
                    ActorIdentity(id=args.user_id, email=args.email, name=args.name)
                )
            except IdentityError as exc:
                print(exc.message, file=sys.stderr)
                return 1
            await container.actors.sign_in(actor)
            print(f"Signed in as {actor.display_name}")
            return 0

        if args.command == "sign-out":
            removed = await container.actors.sign_out()
            print("Signed out" if removed else "Nobody is signed in")
            return 0

        actor = await container.actors.current()
        if actor is None:
            print("Nobody is signed in")
            return 1
        info = await container.lookup.resolve(actor.id)
        print(f"{actor.id} {info.name}{f' <{info.email}>' if info.email else ''}")
        return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        return asyncio.run(run(args))
    except CatalogError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user, shutting down")
        return 130


if __name__ == "__main__":
    sys.exit(main())
