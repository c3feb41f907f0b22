"""Budget category registry: owns the 100% ceiling on active percentages."""

import sqlite3
from collections.abc import Sequence

import structlog

from fundflow.domain import categories as rules
from fundflow.domain.errors import NotFound, PercentageExceeded
from fundflow.domain.models import BasisPoints, BudgetCategory, CategoryPercentage, PercentageValidation
from fundflow.services.base import StoreService
from fundflow.store import queries

log = structlog.get_logger(__name__)


class BudgetCategoryRegistry(StoreService):
    """Create, change and deactivate budget categories.

    After every successful call the active categories total at most 100%.
    """

    def _require(self, conn: sqlite3.Connection, category_id: int) -> BudgetCategory:
        category = queries.get_category(conn, category_id)
        if category is None:
            raise NotFound(f"Budget category not found: {category_id}")
        return category

    def add_category(self, name: str, percentage: BasisPoints) -> BudgetCategory:
        """Add an active category at the end of the sort order.

        Raises:
            InvalidPercentage: If percentage is outside 0-100%.
            PercentageExceeded: If the active total would pass 100%.
        """
        with self.transaction() as conn:
            existing = queries.list_categories(conn)
            try:
                rules.check_percentage_ceiling(rules.active_total(existing), percentage)
            except PercentageExceeded:
                log.warning("category_rejected", name=name, percentage=percentage)
                raise
            category = queries.insert_category(conn, name, percentage, rules.next_sort_order(existing))

        log.info("category_added", category_id=category.id, name=name, percentage=percentage)
        return category

    def update_category(
        self,
        category_id: int,
        percentage: BasisPoints | None = None,
        name: str | None = None,
        sort_order: int | None = None,
    ) -> BudgetCategory:
        """Change a category's percentage, name or sort order.

        The ceiling check excludes the category's own current percentage.

        Raises:
            NotFound: If the category does not exist.
            InvalidPercentage: If percentage is outside 0-100%.
            PercentageExceeded: If an active category's new percentage breaks the ceiling.
        """
        with self.transaction() as conn:
            category = self._require(conn, category_id)
            if percentage is not None:
                rules.check_percentage_range(percentage)
                if category.is_active:
                    others = rules.active_total(queries.list_categories(conn), exclude_id=category_id)
                    try:
                        rules.check_percentage_ceiling(others, percentage)
                    except PercentageExceeded:
                        log.warning("category_update_rejected", category_id=category_id, percentage=percentage)
                        raise
            queries.update_category(
                conn, category_id, name=name, target_percentage=percentage, sort_order=sort_order
            )
            updated = self._require(conn, category_id)

        log.info(
            "category_updated",
            category_id=category_id,
            old_percentage=category.target_percentage,
            new_percentage=updated.target_percentage,
        )
        return updated

    def deactivate_category(self, category_id: int) -> BudgetCategory:
        """Soft-deactivate a category.

        Raises:
            NotFound: If the category does not exist.
            Conflict: If an active spending category or a non-zero allocation references it.
        """
        with self.transaction() as conn:
            category = self._require(conn, category_id)
            if not category.is_active:
                return category
            rules.check_deactivation(
                category,
                queries.count_active_spending_categories(conn, category_id),
                queries.sum_allocations_for_category(conn, category_id),
            )
            queries.update_category(conn, category_id, is_active=False)
            updated = self._require(conn, category_id)

        log.info("category_deactivated", category_id=category_id)
        return updated

    def reactivate_category(self, category_id: int) -> BudgetCategory:
        """Reactivate a category, re-applying the 100% ceiling.

        Raises:
            NotFound: If the category does not exist.
            PercentageExceeded: If its percentage no longer fits.
        """
        with self.transaction() as conn:
            category = self._require(conn, category_id)
            if category.is_active:
                return category
            existing = queries.list_categories(conn)
            rules.check_percentage_ceiling(rules.active_total(existing), category.target_percentage)
            queries.update_category(
                conn, category_id, is_active=True, sort_order=rules.next_sort_order(existing)
            )
            updated = self._require(conn, category_id)

        log.info("category_reactivated", category_id=category_id)
        return updated

    def add_spending_category(self, name: str, budget_category_id: int | None = None) -> int:
        """Add a spending category, optionally under a budget category.

        Raises:
            NotFound: If the budget category does not exist.
        """
        with self.transaction() as conn:
            if budget_category_id is not None:
                self._require(conn, budget_category_id)
            return queries.insert_spending_category(conn, name, budget_category_id)

    def deactivate_spending_category(self, spending_category_id: int) -> None:
        """Deactivate a spending category so it no longer blocks its budget category."""
        with self.transaction() as conn:
            queries.set_spending_category_active(conn, spending_category_id, False)

    def get_category(self, category_id: int) -> BudgetCategory:
        """Get a category by id.

        Raises:
            NotFound: If the category does not exist.
        """
        with self.connection() as conn:
            return self._require(conn, category_id)

    def list_categories(self, include_inactive: bool = False) -> list[BudgetCategory]:
        """List categories in sort order."""
        with self.connection() as conn:
            return queries.list_categories(conn, include_inactive)

    def active_total(self) -> BasisPoints:
        """Total percentage of the active categories."""
        return rules.active_total(self.list_categories())

    def validate_percentages(self, proposed: Sequence[CategoryPercentage]) -> PercentageValidation:
        """Check proposed percentages for known categories against 100%.

        Raises:
            NotFound: If a proposed category does not exist.
        """
        with self.connection() as conn:
            known = {c.id for c in queries.list_categories(conn, include_inactive=True)}
        for entry in proposed:
            if entry.category_id not in known:
                raise NotFound(f"Budget category not found: {entry.category_id}")
        return rules.validate_percentages(proposed)

    def validate_active(self) -> PercentageValidation:
        """Check the stored active categories against 100%."""
        return rules.validate_percentages(
            [CategoryPercentage(c.id, c.target_percentage) for c in self.list_categories()]
        )
