# tests/unit/logging/test_context.py — v2
"""Tests for logging/context.py — contextual logging variables."""

from __future__ import annotations

import asyncio

import pytest

from seoscope.logging.context import (
    clear_context,
    get_context,
    set_batch_context,
    set_document_context,
    set_stage_context,
)


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_initial_state(self):
        ctx = get_context()
        assert ctx.document_id is None
        assert ctx.batch_id is None
        assert ctx.stage is None

    def test_set_document_context(self):
        set_document_context("doc1", "batch1")
        ctx = get_context()
        assert ctx.document_id == "doc1"
        assert ctx.batch_id == "batch1"

    def test_document_context_keeps_batch(self):
        set_batch_context("batch1")
        set_document_context("doc2")
        assert get_context().batch_id == "batch1"

    def test_set_stage_context(self):
        set_stage_context("computing")
        assert get_context().stage == "computing"

    def test_as_dict_filters_none(self):
        set_document_context("doc1")
        d = get_context().as_dict()
        assert d == {"document_id": "doc1"}

    def test_clear(self):
        set_document_context("doc1", "batch1")
        set_stage_context("scored")
        clear_context()
        ctx = get_context()
        assert ctx.document_id is None
        assert ctx.stage is None

    @pytest.mark.asyncio
    async def test_tasks_do_not_share_context(self):
        async def worker(doc_id: str) -> str | None:
            set_document_context(doc_id)
            await asyncio.sleep(0)
            return get_context().document_id

        results = await asyncio.gather(worker("a"), worker("b"))
        assert results == ["a", "b"]
