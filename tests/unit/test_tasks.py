"""Unit tests for background account tasks."""

from unittest.mock import AsyncMock, patch

import pytest

from app.core.errors import DatabaseError
from app.services.tasks import retry_account_cascade


class TestRetryAccountCascade:
    """Test the cascade retry task run synchronously."""

    def test_completed_run(self):
        with patch("app.services.tasks._run_cascade", AsyncMock(return_value=[])):
            result = retry_account_cascade.run("user-1")

        assert result == {"user_id": "user-1", "status": "completed"}

    def test_incomplete_run_retries(self):
        with patch(
            "app.services.tasks._run_cascade", AsyncMock(return_value=["storage"])
        ):
            # Outside a worker, retry re-raises the given exception
            with pytest.raises(DatabaseError) as exc_info:
                retry_account_cascade.run("user-1")

        assert exc_info.value.details == ["storage"]
