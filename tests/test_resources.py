"""Tests for files shipped with the package."""

from sheet_finance.resources import load_apps_script
from sheet_finance.sources.sheet_client import SCRIPT_URL_MARKER


class TestAppsScript:
    """Tests for the bundled spreadsheet script."""

    def test_serves_read_and_write(self) -> None:
        """Test both web app entry points are present."""
        script = load_apps_script()
        assert "function doGet(e)" in script
        assert "function doPost(e)" in script

    def test_handles_client_actions(self) -> None:
        """Test the actions and acknowledgement the sheet client sends and expects."""
        script = load_apps_script()
        assert 'data.action === "add"' in script
        assert 'data.action === "delete"' in script
        assert 'status: "success"' in script

    def test_delete_is_soft(self) -> None:
        """Test delete writes Deleted into a Status column it creates if missing."""
        script = load_apps_script()
        assert 'setValue("Status")' in script
        assert 'setValue("Deleted")' in script
        assert "deleteRow" not in script

    def test_setup_mentions_exec_url(self) -> None:
        """Test the setup notes point at the URL form read-write mode detects."""
        assert SCRIPT_URL_MARKER in load_apps_script()
