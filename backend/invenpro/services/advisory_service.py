# Overview: Stock advisory insights; deterministic rules plus validation of externally produced insights.

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional

from ..extensions import db
from ..models import Product

logger = logging.getLogger(__name__)

SEVERITIES = ("low", "medium", "high")
MAX_INSIGHTS = 4

_SEVERITY_RANK = {"high": 0, "medium": 1, "low": 2}


@dataclass(frozen=True)
class Insight:
    title: str
    description: str
    severity: str
    action: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _rule_insights(p: Product) -> Insight | None:
    if p.quantity <= 0:
        return Insight(
            title=f"{p.name} is out of stock",
            description=f"{p.sku} has {p.quantity} {p.uom} on hand against a minimum of {p.min_stock}.",
            severity="high",
            action=f"Raise a purchase order for at least {max(p.min_stock - p.quantity, 1)} {p.uom}.",
        )
    if p.quantity <= p.min_stock:
        return Insight(
            title=f"Reorder {p.name}",
            description=f"{p.sku} is at {p.quantity} {p.uom}, at or below its minimum of {p.min_stock}.",
            severity="medium",
            action=f"Restock toward the maximum of {p.max_stock} {p.uom}.",
        )
    if p.max_stock and p.quantity > p.max_stock:
        return Insight(
            title=f"{p.name} is overstocked",
            description=f"{p.sku} holds {p.quantity} {p.uom}, above its maximum of {p.max_stock}.",
            severity="low",
            action="Hold purchases or run a clearance on the excess.",
        )
    return None


def generate_insights(products: Iterable[Product] | None = None) -> list[Insight]:
    """
    At most four insights, most severe first. Read-only.
    """
    if products is None:
        products = db.session.query(Product).order_by(Product.seq.desc()).all()

    found = [i for i in (_rule_insights(p) for p in products) if i is not None]
    found.sort(key=lambda i: _SEVERITY_RANK[i.severity])
    return found[:MAX_INSIGHTS]


def _coerce_insight(obj: Any) -> Insight | None:
    if not isinstance(obj, dict):
        return None
    title = obj.get("title")
    description = obj.get("description")
    severity = obj.get("severity")
    action = obj.get("action")

    if not isinstance(title, str) or not title.strip():
        return None
    if not isinstance(description, str) or not description.strip():
        return None
    if not isinstance(severity, str) or severity.strip().lower() not in SEVERITIES:
        return None
    if action is not None and not isinstance(action, str):
        return None

    return Insight(
        title=title.strip(),
        description=description.strip(),
        severity=severity.strip().lower(),
        action=action.strip() if action and action.strip() else None,
    )


def parse_insights(payload: Any) -> list[Insight]:
    """
    Accept insights produced outside this process (JSON text or decoded list).

    Malformed input yields an empty list; objects failing the
    title/description/severity(/action) schema are dropped. Capped at four.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload or "[]")
        except ValueError:
            logger.warning("advisory payload is not valid JSON; ignoring")
            return []

    if not isinstance(payload, list):
        return []

    accepted = []
    for obj in payload:
        insight = _coerce_insight(obj)
        if insight is None:
            logger.debug("dropping malformed insight: %r", obj)
            continue
        accepted.append(insight)
    return accepted[:MAX_INSIGHTS]
