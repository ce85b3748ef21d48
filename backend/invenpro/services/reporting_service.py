# Overview: Read-only analytics over the catalog and movement ledger (dashboard, business sheet).

from __future__ import annotations

from collections import OrderedDict

from sqlalchemy import func

from ..extensions import db
from ..models import Product, StockMovement

# Number of low-stock products surfaced on the dashboard
DASHBOARD_LOW_STOCK_LIMIT = 5


def _catalog() -> list[Product]:
    return db.session.query(Product).order_by(Product.seq.desc()).all()


def dashboard_summary() -> dict:
    """
    Headline stock figures. Money in cents.

    Low stock means quantity <= min_stock.
    """
    products = _catalog()
    low = [p for p in products if p.is_low_stock]

    by_category: "OrderedDict[str, int]" = OrderedDict()
    by_warehouse: "OrderedDict[str, int]" = OrderedDict()
    for p in products:
        by_category[p.category] = by_category.get(p.category, 0) + 1
        wh = p.warehouse_id or "Unknown"
        by_warehouse[wh] = by_warehouse.get(wh, 0) + p.quantity

    return {
        "total_units": sum(p.quantity for p in products),
        "low_stock_count": len(low),
        "inventory_valuation_cents": sum(p.purchase_price_cents * p.quantity for p in products),
        "potential_revenue_cents": sum(p.selling_price_cents * p.quantity for p in products),
        "unique_skus": len(products),
        "low_stock_items": [p.to_dict() for p in low[:DASHBOARD_LOW_STOCK_LIMIT]],
        "category_distribution": [{"name": k, "value": v} for k, v in by_category.items()],
        "warehouse_distribution": [{"name": k, "value": v} for k, v in by_warehouse.items()],
    }


def _margin_ratio(p: Product) -> float:
    if not p.selling_price_cents:
        return 0.0
    return (p.selling_price_cents - p.purchase_price_cents) / p.selling_price_cents


def business_sheet() -> dict:
    """
    Financial view for the owner.

    realized_sales_cents values SALE movements at each product's CURRENT
    selling price; movements of deleted products count as zero.
    """
    products = _catalog()

    sold = dict(
        db.session.query(StockMovement.product_id, func.coalesce(func.sum(StockMovement.quantity), 0))
        .filter(StockMovement.type == "SALE")
        .group_by(StockMovement.product_id)
        .all()
    )

    performance = []
    for p in products:
        sales_count = int(sold.get(p.id, 0))
        margin = p.selling_price_cents - p.purchase_price_cents
        performance.append({
            "product_id": p.id,
            "sku": p.sku,
            "name": p.name,
            "category": p.category,
            "quantity": p.quantity,
            "margin_cents": margin,
            "sales_count": sales_count,
            "profit_contribution_cents": sales_count * margin,
        })
    # Stable sort: ties keep catalog order
    performance.sort(key=lambda row: row["profit_contribution_cents"], reverse=True)

    avg_margin = sum(_margin_ratio(p) for p in products) / len(products) if products else 0.0

    return {
        "total_assets_value_cents": sum(p.purchase_price_cents * p.quantity for p in products),
        "projected_revenue_cents": sum(p.selling_price_cents * p.quantity for p in products),
        "realized_sales_cents": sum(int(sold.get(p.id, 0)) * p.selling_price_cents for p in products),
        "average_margin_ratio": round(avg_margin, 4),
        "item_performance": performance,
    }
