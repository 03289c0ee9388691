"""Unit tests for logging utilities."""

from unittest.mock import Mock

from mhb_monitor.core.logging import log_repair_complete, log_repair_start


class TestLoggingUtilities:
    """Test logging utility functions."""

    def test_log_repair_start(self):
        """Test log_repair_start function."""
        mock_logger = Mock()

        log_repair_start(
            logger=mock_logger,
            repair_name="memory_cleanup",
            label="Memory Cleanup",
        )

        mock_logger.info.assert_called_once_with(
            "Triggering repair",
            repair="memory_cleanup",
            label="Memory Cleanup",
        )

    def test_log_repair_complete(self):
        """Test log_repair_complete function."""
        # Create mock logger
        mock_logger = Mock()

        # Call the function
        log_repair_complete(
            logger=mock_logger,
            repair_name="error_mitigation",
            label="Error Pattern Mitigation",
            result={"success": True, "action": "error_analysis"},
            additional_info="test data",
        )

        # Verify the logger was called correctly
        mock_logger.info.assert_called_once_with(
            "Repair completed",
            repair="error_mitigation",
            label="Error Pattern Mitigation",
            result={"success": True, "action": "error_analysis"},
            additional_info="test data",
        )
