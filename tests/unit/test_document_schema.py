from __future__ import annotations

import pytest

from stocksync.models.document import (
    PURCHASE_HEADER,
    STOCK_HEADER,
    DocumentKind,
    UserRole,
    document_kind,
)


@pytest.mark.parametrize(
    "header,expected",
    [
        (STOCK_HEADER, DocumentKind.STOCK),
        (PURCHASE_HEADER, DocumentKind.PURCHASE),
        (["Part Name", "Part No", "  PURCHASE "], DocumentKind.PURCHASE),
        (["Part Name", "Part No", "Purchases"], DocumentKind.STOCK),
        (["Part Name", "Part No"], DocumentKind.STOCK),
        (["Part Name", "Part No", None], DocumentKind.STOCK),
        ([], DocumentKind.STOCK),
        (None, DocumentKind.STOCK),
    ],
)
def test_document_kind(header, expected):
    assert document_kind(header) is expected


def test_headers_differ_only_in_quantity_column():
    diff = [i for i, (a, b) in enumerate(zip(STOCK_HEADER, PURCHASE_HEADER)) if a != b]
    assert diff == [2]
    assert len(STOCK_HEADER) == 7


@pytest.mark.parametrize(
    "role,can_edit",
    [(UserRole.OWNER, True), (UserRole.EDITOR, True), (UserRole.VIEWER, False)],
)
def test_user_role_can_edit(role, can_edit):
    assert role.can_edit is can_edit
