"""History capture through AutoHistorySession on SQLite.

Every test commits real changes and inspects the auto_history rows written
in the same transaction.
"""

import json
import logging

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from autohistory.application.services.metadata_resolver import StaticMetadataResolver
from autohistory.application.services.record_serializer import parse_changes
from autohistory.core.config import Settings
from autohistory.domain.enums import MutationKind
from autohistory.domain.exceptions import HistoryModelException
from autohistory.infrastructure.persistence.change_tracker import SessionEntry
from autohistory.infrastructure.persistence.models import AutoHistory
from autohistory.infrastructure.persistence.session import (
    capture_service_for,
    discard_pending_history,
    install_auto_history,
)
from history_models import CustomHistory, Product, TenantItem, Untracked, history_rows


def _changes(row) -> tuple[dict | None, dict | None]:
    changes = parse_changes(row)
    assert changes is not None
    return changes.before, changes.after


@pytest.fixture
def product(session: Session) -> Product:
    """A committed Product; its creation history is already written."""
    product = Product(name="Widget", price=9.99, internal_note="draft")
    session.add(product)
    session.commit()
    return product


class TestCreate:
    def test_created_row_has_generated_id_and_all_fields(
        self, session: Session, product: Product
    ) -> None:
        [row] = history_rows(session)
        assert row.entity_type == "Product"
        assert row.entity_id == str(product.id)
        assert row.kind == "created"
        assert row.id
        assert row.timestamp is not None
        before, after = _changes(row)
        assert before is None
        assert after == {"id": product.id, "name": "Widget", "price": 9.99}

    def test_composite_key(self, session: Session) -> None:
        session.add(TenantItem(tenant_id=7, local_id=3, label="a", cached_label="A"))
        session.commit()
        [row] = history_rows(session)
        assert row.entity_id == "7,3"
        assert _changes(row)[1] == {"tenant_id": 7, "local_id": 3, "label": "a"}

    def test_several_inserts_in_one_commit(self, session: Session) -> None:
        session.add_all([Product(name="A"), Product(name="B"), Product(name="C")])
        session.commit()
        rows = history_rows(session)
        assert sorted(_changes(r)[1]["name"] for r in rows) == ["A", "B", "C"]
        assert len({r.entity_id for r in rows}) == 3

    def test_untracked_entity_has_no_history(self, session: Session) -> None:
        session.add(Untracked(value="x"))
        session.commit()
        assert history_rows(session) == []


class TestUpdate:
    def test_changed_field_recorded(self, session: Session, product: Product) -> None:
        product.name = "Gadget"
        session.commit()
        row = history_rows(session)[-1]
        assert row.kind == "updated"
        assert row.entity_id == str(product.id)
        assert _changes(row) == ({"name": "Widget"}, {"name": "Gadget"})

    def test_setting_same_value_records_nothing(
        self, session: Session, product: Product
    ) -> None:
        product.name = "Widget"
        session.commit()
        assert len(history_rows(session)) == 1

    def test_numeric_change_below_rounding_records_nothing(
        self, session: Session, product: Product
    ) -> None:
        product.price = 9.994
        session.commit()
        assert len(history_rows(session)) == 1

    def test_numeric_change_recorded(self, session: Session, product: Product) -> None:
        product.price = 12.5
        session.commit()
        assert _changes(history_rows(session)[-1]) == ({"price": 9.99}, {"price": 12.5})

    def test_excluded_field_change_records_nothing(
        self, session: Session, product: Product
    ) -> None:
        product.internal_note = "final"
        session.commit()
        assert len(history_rows(session)) == 1

    def test_update_loaded_in_new_session(
        self, session_factory: sessionmaker[Session], product: Product
    ) -> None:
        with session_factory() as other:
            loaded = other.get(Product, product.id)
            loaded.price = 20.0
            other.commit()
            row = history_rows(other)[-1]
        assert row.kind == "updated"
        assert _changes(row) == ({"price": 9.99}, {"price": 20.0})

    def test_update_and_history_share_the_transaction(
        self, session: Session, product: Product
    ) -> None:
        product.name = "Gadget"
        session.flush()
        session.rollback()
        assert len(history_rows(session)) == 1
        assert session.get(Product, product.id).name == "Widget"


class TestDelete:
    def test_deleted_row_has_all_original_values(
        self, session: Session, product: Product
    ) -> None:
        product_id = product.id
        session.delete(product)
        session.commit()
        row = history_rows(session)[-1]
        assert row.kind == "deleted"
        assert row.entity_id == str(product_id)
        assert _changes(row) == (
            {"id": product_id, "name": "Widget", "price": 9.99},
            None,
        )


class TestExpiredObjects:
    """Changes to objects expired by commit() or session.expire()."""

    @pytest.fixture
    def expired_product(self, expiring_session: Session) -> Product:
        product = Product(name="Widget", price=9.99)
        expiring_session.add(product)
        expiring_session.commit()
        return product

    def test_change_reports_stored_value_as_before(
        self, expiring_session: Session, expired_product: Product
    ) -> None:
        expired_product.name = "Gadget"
        expiring_session.commit()
        row = history_rows(expiring_session)[-1]
        assert row.kind == "updated"
        assert _changes(row) == ({"name": "Widget"}, {"name": "Gadget"})

    def test_same_value_assignment_records_nothing(
        self, expiring_session: Session, expired_product: Product
    ) -> None:
        expired_product.name = "Widget"
        expired_product.price = 9.99
        expiring_session.commit()
        assert len(history_rows(expiring_session)) == 1

    def test_delete_of_expired_object(
        self, expiring_session: Session, expired_product: Product
    ) -> None:
        product_id = expired_product.id
        expiring_session.expire(expired_product)
        expiring_session.delete(expired_product)
        expiring_session.commit()
        row = history_rows(expiring_session)[-1]
        assert row.kind == "deleted"
        assert _changes(row) == (
            {"id": product_id, "name": "Widget", "price": 9.99},
            None,
        )

    def test_entry_defers_unknown_original_to_stored_value(
        self, session: Session, product: Product
    ) -> None:
        session.expire(product)
        product.name = "Gadget"
        entry = SessionEntry(session, product, MutationKind.UPDATED)
        with session.no_autoflush:
            [name] = [p for p in entry.properties() if p.name == "name"]
        assert name.is_modified
        assert name.original_value == name.current_value == "Gadget"
        assert entry.stored_value("name") == "Widget"


class TestSessionIsolation:
    def test_each_session_records_its_own_insertions(
        self, session_factory: sessionmaker[Session]
    ) -> None:
        with session_factory() as first, session_factory() as second:
            first.add(Product(name="first"))
            second.add(Product(name="second"))
            first.commit()
            second.commit()
            assert capture_service_for(first) is not capture_service_for(second)
            names = [_changes(r)[1]["name"] for r in history_rows(first)]
        assert sorted(names) == ["first", "second"]

    def test_failed_flush_discards_staged_insertions(
        self,
        session_factory: sessionmaker[Session],
        product: Product,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with session_factory() as other:
            other.add(Product(id=product.id, name="duplicate"))
            with caplog.at_level(logging.WARNING):
                with pytest.raises(IntegrityError):
                    other.commit()
            assert len(capture_service_for(other).queue) == 0
            assert "Discarded 1 staged insertion(s)" in caplog.text

    def test_discard_pending_history_without_service(self, session: Session) -> None:
        assert discard_pending_history(session) == 0


class TestConfiguration:
    def test_history_disabled(self, engine, session: Session) -> None:
        disabled = sessionmaker(bind=engine, expire_on_commit=False)
        install_auto_history(disabled, settings=Settings(history_enabled=False))
        with disabled() as plain:
            plain.add(Product(name="quiet"))
            plain.commit()
        assert history_rows(session) == []

    def test_custom_history_model_and_resolver(self, engine) -> None:
        factory = sessionmaker(bind=engine, expire_on_commit=False)
        install_auto_history(
            factory,
            resolver=StaticMetadataResolver({Untracked: ()}),
            history_model=CustomHistory,
            settings=Settings(history_indent=None),
        )
        with factory() as custom:
            custom.add(Untracked(value="x"))
            custom.add(Product(name="not registered here"))
            custom.commit()
            [row] = history_rows(custom, CustomHistory)
            assert history_rows(custom) == []
        assert row.entity_type == "Untracked"
        assert "\n" not in row.diff

    def test_unusable_history_model_rejected(self) -> None:
        with pytest.raises(HistoryModelException) as exc_info:
            install_auto_history(Session, history_model=Untracked)
        assert "entity_id" in exc_info.value.details["reason"]

    def test_skip_hook_called_for_failing_entity(self, engine) -> None:
        skipped = []

        class ExplodingResolver(StaticMetadataResolver):
            def excluded_fields(self, entity_type: type) -> frozenset[str]:
                if entity_type is Untracked:
                    raise RuntimeError("metadata unavailable")
                return super().excluded_fields(entity_type)

        factory = sessionmaker(bind=engine, expire_on_commit=False)
        install_auto_history(
            factory,
            resolver=ExplodingResolver({Untracked: (), Product: ()}),
            on_skip=lambda entry, error: skipped.append((entry.entity, error)),
        )
        with factory() as s:
            s.add_all([Untracked(value="x"), Product(name="ok")])
            s.commit()
            rows = history_rows(s)
        assert [r.entity_type for r in rows] == ["Product"]
        assert len(skipped) == 1
        assert str(skipped[0][1]) == "metadata unavailable"


class TestAppendOnly:
    def test_history_rows_cannot_be_updated(self, session: Session, product: Product) -> None:
        row = session.scalars(select(AutoHistory)).one()
        row.diff = json.dumps({"before": {}, "after": {}})
        with pytest.raises(ValueError, match="immutable"):
            session.commit()

    def test_history_rows_cannot_be_deleted(self, session: Session, product: Product) -> None:
        session.delete(session.scalars(select(AutoHistory)).one())
        with pytest.raises(ValueError, match="cannot be deleted"):
            session.commit()
