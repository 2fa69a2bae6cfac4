"""
Tests for the command-line entry points in backend/scripts.
"""

from contextlib import contextmanager
from unittest.mock import patch

import pytest

from scripts import init_database, process_scheduled_communications
from services.communication_processor import DispatchResult, ProcessingSummary


def _context_for(session):
    @contextmanager
    def fake_context():
        yield session
    return fake_context


class TestProcessScheduledCommunicationsScript:
    def test_runs_one_pass_with_batch_size(self, db_session, capsys):
        summary = ProcessingSummary(
            processed=2,
            results=[DispatchResult(id="c-1", success=True), DispatchResult(id="c-2", success=False)],
        )

        with patch.object(process_scheduled_communications, "get_db_context", _context_for(db_session)), \
             patch.object(process_scheduled_communications, "CommunicationProcessor") as mock_processor:
            mock_processor.return_value.process_due.return_value = summary
            exit_code = process_scheduled_communications.main(["--batch-size", "10"])

        assert exit_code == 0
        mock_processor.assert_called_once_with(db_session)
        mock_processor.return_value.process_due.assert_called_once_with(batch_size=10)
        assert "Processed 2 communications (1 sent, 1 not sent)." in capsys.readouterr().out

    def test_failure_returns_non_zero(self, db_session):
        with patch.object(process_scheduled_communications, "get_db_context", _context_for(db_session)), \
             patch.object(process_scheduled_communications, "CommunicationProcessor") as mock_processor:
            mock_processor.return_value.process_due.side_effect = RuntimeError("database unavailable")
            exit_code = process_scheduled_communications.main([])

        assert exit_code == 1
        mock_processor.return_value.process_due.assert_called_once_with(batch_size=50)

    def test_rejects_non_positive_batch_size(self):
        with pytest.raises(SystemExit):
            process_scheduled_communications.main(["--batch-size", "0"])


class TestInitDatabaseScript:
    def test_creates_tables(self):
        with patch.object(init_database, "create_tables") as mock_create, \
             patch.object(init_database, "drop_tables") as mock_drop:
            assert init_database.main([]) == 0

        mock_create.assert_called_once_with()
        mock_drop.assert_not_called()

    def test_reset_drops_first(self):
        with patch.object(init_database, "create_tables") as mock_create, \
             patch.object(init_database, "drop_tables") as mock_drop:
            assert init_database.main(["--reset"]) == 0

        mock_drop.assert_called_once_with()
        mock_create.assert_called_once_with()

    def test_failure_returns_non_zero(self):
        with patch.object(init_database, "create_tables", side_effect=RuntimeError("no database")):
            assert init_database.main([]) == 1
