from dataclasses import dataclass

from libb import ConfigOptions, scriptname

__all__ = [
    'DatabaseOptions',
]

SUPPORTED_DRIVERS = ('postgresql',)
REQUIRED_OPTIONS = ('hostname', 'username', 'password', 'database', 'port')


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`

    `dsn` takes a full connection URL (e.g. `postgresql://u:p@host/db`) and
    overrides the discrete connection fields when given.

    Connection pooling options:
    - use_pool: Whether to use connection pooling (default: False)
    - pool_max_connections: Maximum connections in pool (default: 5)
    - pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    dsn: str = None
    # Connection pooling parameters
    use_pool: bool = False
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 30

    def __post_init__(self):
        if self.drivername not in SUPPORTED_DRIVERS:
            raise ValueError(f'drivername must be one of: {list(SUPPORTED_DRIVERS)}')
        if not self.dsn:
            for field in REQUIRED_OPTIONS:
                if not getattr(self, field):
                    raise ValueError(f'field {field} cannot be None or 0')
        self.appname = self.appname or scriptname() or 'python_console'
