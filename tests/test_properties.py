"""
Property-based tests with Hypothesis for the cart admission rules.
"""

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from factory_api.core.errors import ServiceError

# Existencia del tornillo 1001 en la sucursal 1 (ver seed_products)
SCREW_STOCK = 5


class TestCartProperties:

    @given(
        calls=st.lists(
            st.tuples(st.integers(min_value=-6, max_value=8), st.booleans()),
            min_size=1,
            max_size=12,
        )
    )
    @settings(
        max_examples=60,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    def test_cart_never_exceeds_stock(self, calls, db_session, cart_service, seed_products):
        """Property: cualquier secuencia deja qty <= existencia; un rechazo no cambia el carrito."""
        screw, _ = seed_products
        cart_service.clear(db_session, "prop-cli")

        for qty, is_increment in calls:
            before = cart_service.count(db_session, "prop-cli")
            try:
                cart_service.add_or_increment(
                    db_session, "prop-cli", screw.id, 1, qty, is_increment=is_increment
                )
            except ServiceError:
                assert cart_service.count(db_session, "prop-cli") == before
            assert cart_service.count(db_session, "prop-cli") <= SCREW_STOCK

    @given(
        first_qty=st.integers(min_value=1, max_value=SCREW_STOCK),
        other_branch_qty=st.integers(min_value=1, max_value=20),
    )
    @settings(
        max_examples=30,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    def test_other_branch_never_enters_cart(self, first_qty, other_branch_qty, db_session, cart_service, seed_products):
        """Property: un producto de otra sucursal siempre se rechaza sin tocar el carrito."""
        screw, _ = seed_products
        cart_service.clear(db_session, "prop-cli")
        cart_service.add_or_increment(db_session, "prop-cli", screw.id, 1, first_qty)

        with pytest.raises(ServiceError) as exc_info:
            cart_service.add_or_increment(db_session, "prop-cli", screw.id, 2, other_branch_qty)
        assert exc_info.value.code == "DIFFERENT_BRANCH"

        assert cart_service.count(db_session, "prop-cli") == first_qty
