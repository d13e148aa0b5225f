"""
Alert formatting component for the HealthKart Deal Alert system.

This module formats products into Telegram HTML messages. Output depends
only on the products and the timestamp passed in.
"""

import html
import math
from datetime import datetime
from typing import List, Optional

from dateutil import tz

from ..models.product import Product, sort_by_discount
from ..utils.logging import get_logger

logger = get_logger("alert.formatter")

DISPLAY_TIMEZONE = tz.gettz("Asia/Kolkata")
SEPARATOR = "━━━━━━━━━━━━━━━━━━━━"
HASHTAGS = "#HealthKart #ProteinDeals #WheyProtein"

HOT_DISCOUNT = 50


def format_price(amount: float) -> str:
    """Format rupee amounts with thousands separators."""
    if float(amount).is_integer():
        return f"₹{amount:,.0f}"
    return f"₹{amount:,.2f}"


def format_timestamp(timestamp: datetime) -> str:
    """Format a timestamp in Indian Standard Time, e.g. 19/10/2026, 09:30:00 AM."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=tz.tzlocal())
    local = timestamp.astimezone(DISPLAY_TIMEZONE)
    return local.strftime("%d/%m/%Y, %I:%M:%S %p")


def rating_stars(rating: float) -> str:
    return "⭐" * int(math.floor(rating))


def _escape(text: str) -> str:
    return html.escape(str(text), quote=False)


class AlertFormatter:
    """Formats products into Telegram HTML messages."""

    def __init__(self, max_products: int = 5):
        """
        Initialize the alert formatter.

        Args:
            max_products: Maximum number of products in a consolidated alert
        """
        self.max_products = max_products

    def format_product_block(self, product: Product) -> str:
        """Format one product as a message block."""
        specs = product.specifications
        marker = "🔥" if product.discount_percentage >= HOT_DISCOUNT else "💰"

        lines = [
            f"{marker} <b>{_escape(product.name)}</b>",
            f"🏷️ Brand: {_escape(product.brand)}",
            f"💵 <s>{format_price(product.original_price)}</s> → "
            f"<b>{format_price(product.current_price)}</b>",
            f"📉 {product.discount_percentage:.0f}% OFF "
            f"(save {format_price(round(product.get_savings_amount(), 2))})",
        ]

        if product.rating > 0:
            lines.append(
                f"{rating_stars(product.rating)} {product.rating:.1f}/5 "
                f"({product.review_count} reviews)"
            )

        details = []
        if specs.flavor != "Unknown":
            details.append(f"🍫 {_escape(specs.flavor)}")
        if specs.weight != "Unknown":
            details.append(f"⚖️ {_escape(specs.weight)}")
        if specs.protein_per_serving != "0g":
            details.append(f"💪 {_escape(specs.protein_per_serving)} protein/serving")
        if specs.servings_per_container > 0:
            details.append(f"🥄 {specs.servings_per_container} servings")
        if details:
            lines.append(" | ".join(details))

        lines.append(f'🛒 <a href="{html.escape(product.url)}">Buy now</a>')
        return "\n".join(lines)

    def format_consolidated_alert(self, products: List[Product], timestamp: datetime) -> str:
        """
        Format the top products by discount into one message.

        Args:
            products: Qualifying products (any order)
            timestamp: Time shown in the footer

        Returns:
            HTML message text
        """
        top = sort_by_discount(products, self.max_products)
        if not top:
            raise ValueError("Cannot format an alert without products")

        average_discount = sum(p.discount_percentage for p in top) / len(top)
        total_savings = sum(p.get_savings_amount() for p in top)

        header = [
            f"🚨 <b>{len(top)} Protein Deal{'s' if len(top) != 1 else ''} Found!</b>",
            f"📊 Average discount: {average_discount:.0f}%",
            f"💸 Total savings: {format_price(round(total_savings, 2))}",
        ]
        if len(products) > len(top):
            header.append(f"Showing top {len(top)} of {len(products)} deals")

        blocks = [self.format_product_block(p) for p in top]
        footer = [f"🕐 {format_timestamp(timestamp)}", HASHTAGS]

        message = "\n".join(header) + f"\n{SEPARATOR}\n"
        message += f"\n{SEPARATOR}\n".join(blocks)
        message += f"\n{SEPARATOR}\n" + "\n".join(footer)

        logger.debug("Formatted consolidated alert", extra={"products": len(top)})
        return message

    def format_product_alert(self, product: Product, timestamp: datetime) -> str:
        """Format a single-product alert."""
        return (
            f"🎯 <b>Deal Alert</b>\n{SEPARATOR}\n"
            f"{self.format_product_block(product)}\n{SEPARATOR}\n"
            f"🕐 {format_timestamp(timestamp)}\n{HASHTAGS}"
        )

    def format_monitoring_summary(
        self,
        total_products: int,
        matching_products: int,
        top_deals: List[Product],
        timestamp: datetime,
        errors: Optional[List[str]] = None,
    ) -> str:
        """Format a summary of one monitoring cycle."""
        lines = [
            "📈 <b>Monitoring Summary</b>",
            f"🔎 Products scanned: {total_products}",
            f"✅ Matching deals: {matching_products}",
        ]

        if top_deals:
            lines.append(SEPARATOR)
            lines.append("<b>Top deals:</b>")
            for index, product in enumerate(sort_by_discount(top_deals, self.max_products), 1):
                lines.append(
                    f"{index}. {_escape(product.get_display_name())} - "
                    f"{product.discount_percentage:.0f}% OFF at "
                    f"{format_price(product.current_price)}"
                )

        if errors:
            lines.append(SEPARATOR)
            lines.append(f"⚠️ {len(errors)} error(s) during monitoring")
            for error in errors[:3]:
                lines.append(f"• {_escape(error)}")

        lines.append(SEPARATOR)
        lines.append(f"🕐 {format_timestamp(timestamp)}")
        return "\n".join(lines)
