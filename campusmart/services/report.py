from typing import Optional
import logging

from campusmart.core.errors import NotFound, PermissionDenied, Unauthenticated, translate_store_errors
from campusmart.models.report import Report, Reporter
from campusmart.models.user import User
from campusmart.services.notification import NotificationInbox
from campusmart.services.product import get_product

logger = logging.getLogger(__name__)


class ReportService:
    """Moderation events that land in a seller's inbox"""

    def __init__(self, db, inbox: NotificationInbox):
        self.db = db
        self.inbox = inbox

    async def report_product(self, reporter: Optional[User], product_id: str, reason: str) -> Report:
        if reporter is None:
            raise Unauthenticated("You need to be logged in to report a product.")

        async with translate_store_errors("report_product"):
            product = await get_product(self.db, product_id)
            if product is None:
                raise NotFound("Product not found")
            if product.seller.id == reporter.id:
                raise PermissionDenied("You cannot report your own listing")

            report = Report(
                product_id=product.id,
                product_name=product.name,
                reported_by=Reporter(id=reporter.id, name=reporter.name or reporter.email),
                reason=reason,
            )
            await self.db.reports.insert_one(report.model_dump())

        await self.inbox.notify(
            product.seller.id,
            title="Your product has been reported",
            message=f'Your listing, "{product.name}", has been reported by a user. Our admin team will review it shortly.',
            action_url=f"/products/{product.id}",
        )
        logger.info(f"Product {product.id} reported by {reporter.id}")
        return report
