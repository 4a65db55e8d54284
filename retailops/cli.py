from __future__ import annotations

import argparse
import json
import sys

from retailops.core.config import get_settings
from retailops.core.errors import RetailOpsError
from retailops.core.logging import configure_logging
from retailops.core.security import Actor
from retailops.domain.inventory.status import MovementType
from retailops.engine import TransactionEngine
from retailops.persistence.database import init_db


def _default_actor_id(actor_type: str) -> str:
    settings = get_settings()
    mapping = {
        "staff": settings.staff_actor_id,
        "manager": settings.manager_actor_id,
        "system": settings.system_actor_id,
    }
    return mapping[actor_type]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RetailOps transaction engine CLI")
    parser.add_argument("--log-level", default=None)
    top = parser.add_subparsers(dest="command", required=True)

    top.add_parser("init-db", help="Create all tables")

    adjust = top.add_parser("adjust-stock", help="Record a manual stock movement")
    adjust.add_argument("sku")
    adjust.add_argument("movement_type", choices=[m.value for m in MovementType])
    adjust.add_argument("quantity", type=int, help="units moved, or the counted level for adjustment")
    adjust.add_argument("--reason", default=None)
    adjust.add_argument("--notes", default=None)
    adjust.add_argument("--cost-price", type=int, default=None, help="int cents, restock only")
    adjust.add_argument("--actor-type", choices=["manager", "system"], default="system")
    adjust.add_argument("--actor-id", default=None)

    reconcile = top.add_parser("reconcile", help="Check a variant counter against its movement ledger")
    reconcile.add_argument("sku")

    show = top.add_parser("show-order", help="Print an order with items and refunds")
    show.add_argument("order_id")

    return parser


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _adjust_stock(engine: TransactionEngine, args: argparse.Namespace) -> int:
    actor_type = str(args.actor_type)
    actor = Actor(type=actor_type, id=str(args.actor_id or _default_actor_id(actor_type)))
    result = engine.adjust_inventory(
        {
            "variant_sku": args.sku,
            "movement_type": args.movement_type,
            "quantity": args.quantity,
            "reason": args.reason,
            "notes": args.notes,
            "cost_price": args.cost_price,
        },
        actor,
    )
    _print_json(result.model_dump(mode="json"))
    return 0


def _reconcile(engine: TransactionEngine, args: argparse.Namespace) -> int:
    report = engine.reconcile_variant(args.sku)
    _print_json(report.to_dict())
    return 0 if report.consistent else 1


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    init_db()

    if args.command == "init-db":
        _print_json({"status": "ok", "database_url": get_settings().database_url})
        return 0

    engine = TransactionEngine()
    try:
        if args.command == "adjust-stock":
            return _adjust_stock(engine, args)
        if args.command == "reconcile":
            return _reconcile(engine, args)
        if args.command == "show-order":
            _print_json(engine.get_order(args.order_id).model_dump(mode="json"))
            return 0
    except RetailOpsError as exc:
        _print_json(exc.to_dict())
        return 1

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    sys.exit(main())
