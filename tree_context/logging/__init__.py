from .models import Entry as Entry
from .models import Log as Log
from .models import LogLevel as LogLevel
from .models import LogLevelName as LogLevelName
from .config import LoggingConfig as LoggingConfig
from .config import LogOutput as LogOutput
from .config import StreamType as StreamType
from .streams import LoggerStream as LoggerStream
