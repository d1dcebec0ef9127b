"""
Logging setup for the template composer package logger.
"""
import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

PACKAGE_LOGGER = "template_composer"
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LogConfig:
    """Level and handlers for one logger, the package logger by default."""
    
    def __init__(
        self,
        log_level: str = 'INFO',
        log_file: Optional[str] = None,
        json_logging: bool = False,
        logger_name: str = PACKAGE_LOGGER,
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5
    ):
        """
        Args:
            log_level: Level name
            log_file: Optional rotating log file
            json_logging: Emit one JSON object per record
            logger_name: Logger to configure
            max_bytes: Size of the log file before rotation
            backup_count: Rotated files to keep
        """
        self.log_level = getattr(logging, log_level.upper())
        self.log_file = log_file
        self.json_logging = json_logging
        self.logger_name = logger_name
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        
    @classmethod
    def from_configuration(cls, config) -> "LogConfig":
        """Build from the logging fields of a ComposerConfiguration."""
        return cls(
            log_level=config.log_level,
            log_file=config.log_file,
            json_logging=config.json_logging
        )
        
    def _handlers(self) -> List[logging.Handler]:
        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if self.log_file:
            Path(self.log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                self.log_file,
                maxBytes=self.max_bytes,
                backupCount=self.backup_count
            ))
        return handlers
        
    def configure(self) -> logging.Logger:
        """Replace the logger's handlers and set its level."""
        formatter = JsonFormatter() if self.json_logging else logging.Formatter(DEFAULT_FORMAT)
        target = logging.getLogger(self.logger_name)
        target.setLevel(self.log_level)
        
        for handler in target.handlers[:]:
            target.removeHandler(handler)
            handler.close()
            
        for handler in self._handlers():
            handler.setFormatter(formatter)
            handler.setLevel(self.log_level)
            target.addHandler(handler)
        return target


class JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying the template a record is about."""
    
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        
        # Set through extra={"template": ...} by the template manager
        template = getattr(record, 'template', None)
        if template is not None:
            log_data['template'] = template
            
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
            
        return json.dumps(log_data, default=str)


def configure_logging(config) -> logging.Logger:
    """
    Apply the logging fields of a ComposerConfiguration.
    
    Only the package logger is configured so host applications keep
    control of the root logger.
    """
    return LogConfig.from_configuration(config).configure()
