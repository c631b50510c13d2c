"""Test block state persistence"""

import os
from datetime import datetime
from blocker import db


class TestDatabase:
    """Test database functions"""

    def test_no_block_initially(self, temp_db):
        assert db.get_block() is None

    def test_record_block(self, temp_db):
        """Test recording and reading back a block"""
        before = datetime.now().timestamp()
        end_time = db.record_block('abc', ['example.com', 'other.com'], 30)

        block = db.get_block()
        assert block['token'] == 'abc'
        assert block['hostnames'] == ['example.com', 'other.com']
        assert block['pid'] == os.getpid()
        assert block['end_time'] == end_time
        assert before + 30 * 60 <= end_time <= datetime.now().timestamp() + 30 * 60

    def test_record_replaces_previous(self, temp_db):
        """Only one block is kept"""
        db.record_block('first', ['a.com'], 30)
        db.record_block('second', ['b.com'], 30)

        block = db.get_block()
        assert block['token'] == 'second'
        assert db.owns_block('second')
        assert not db.owns_block('first')

    def test_clear_block_with_token(self, temp_db):
        db.record_block('abc', ['a.com'], 30)

        assert not db.clear_block('other')
        assert db.get_block() is not None

        assert db.clear_block('abc')
        assert db.get_block() is None

    def test_clear_block_without_token(self, temp_db):
        db.record_block('abc', ['a.com'], 30)
        assert db.clear_block()
        assert not db.clear_block()

    def test_claim_block(self, temp_db):
        db.record_block('abc', ['a.com'], 30, pid=1234)

        assert db.claim_block('abc', 5678)
        assert db.get_block()['pid'] == 5678
        assert not db.claim_block('missing', 1)

    def test_init_db_is_repeatable(self, temp_db):
        db.record_block('abc', ['a.com'], 30)
        db.init_db()
        assert db.owns_block('abc')

    def test_is_process_alive(self):
        assert db.is_process_alive(os.getpid())
        assert not db.is_process_alive(999999999)
        assert not db.is_process_alive(0)
