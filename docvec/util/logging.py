"""
Structured operation logging for the document store and the vector query layer.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for document, vector and query operations."""

    def __init__(self, name: str = "docvec"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def set_debug(self, enabled: bool) -> None:
        """Switch between DEBUG and INFO verbosity."""
        self.logger.setLevel(logging.DEBUG if enabled else logging.INFO)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_document_operation(self, operation: str, collection: str, doc_id: str = None, status: str = "success"):
        """Log a document store operation."""
        details = {"collection": collection}
        if doc_id is not None:
            details["doc_id"] = doc_id

        self.log_operation(f"document.{operation}", status, details)

    def log_vector_operation(self, operation: str, record_id: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector operation."""
        log_details = {"record_id": record_id}
        if details:
            log_details.update(details)

        self.log_operation(f"vector.{operation}", status, log_details)

    def log_query_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log query planning and execution outcomes."""
        level = logging.ERROR if status == "failed" else logging.INFO
        self.log_operation(f"query.{operation}", status, details, level=level)

    def log_schema_validation_error(self, operation: str, errors: List[Any], source_record: Dict[str, Any] = None):
        """Log schema validation errors with sanitized details."""
        # Sanitize error details to avoid leaking document contents
        sanitized_errors = []
        for error in errors:
            if isinstance(error, dict):
                sanitized_error = error.copy()
                for field in ['input', 'ctx', 'url']:
                    if field in sanitized_error:
                        sanitized_error[field] = "[REDACTED]"
                sanitized_errors.append(sanitized_error)
            else:
                sanitized_errors.append(str(error)[:100])  # Limit error message length

        log_details = {
            "operation": operation,
            "errors": sanitized_errors,
            "error_count": len(sanitized_errors)
        }

        if source_record:
            # Only log identifiers, not values
            for identifier in ("collection", "field", "doc_id"):
                if identifier in source_record:
                    log_details[identifier] = source_record[identifier]

        self.log_operation("schema_validation.error", "rejected", log_details, level=logging.WARNING)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
