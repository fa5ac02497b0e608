import time

import pytest

from core.config import AnalyzerConfig
from core.data_manager import DataManager

MINIMAL_LOG = """\
# Time: 2023-01-01T00:00:00.000000Z
# User@Host: user[user] @ [1.2.3.4] Id: 42
# Query_time: 1.500000  Lock_time: 0.200000 Rows_sent: 1  Rows_examined: 10
SET timestamp=1672531200;
SELECT * FROM t WHERE id = 5;
# Time: 2023-01-01T00:01:00.000000Z
"""

MULTI_LOG = """\
/rdsdbbin/oscar/bin/mysqld, Version: 5.7.38-log (Source distribution). started with:
Tcp port: 3306  Unix socket: /tmp/mysql.sock
Time                 Id Command    Argument
# Time: 2023-01-01T00:00:00.000000Z
# User@Host: app[app] @ [10.0.0.1] Id: 7
# Query_time: 1.000000  Lock_time: 0.500000 Rows_sent: 1  Rows_examined: 10
use shop;
SET timestamp=1672531200;
SELECT name FROM users WHERE id = 1;
# Time: 2023-01-01T00:00:05.000000Z
# User@Host: app[app] @ [10.0.0.2] Id: 8
# Query_time: 2.000000  Lock_time: 0.500000 Rows_sent: 1  Rows_examined: 10
SET timestamp=1672531205;
SELECT name FROM users WHERE id = 2;
# Time: 2023-01-01T00:00:05.000000Z
# User@Host: app[app] @ [10.0.0.2] Id: 9
# Query_time: 0.250000  Lock_time: 0.000000 Rows_sent: 0  Rows_examined: 0
SET timestamp=1672531205;
UPDATE users
SET name = 'bob'
WHERE id = 3;
# Time: 2023-01-01T00:00:09.000000Z
"""


@pytest.fixture
def utc():
    """固定本地時區為 UTC"""
    mp = pytest.MonkeyPatch()
    mp.setenv("TZ", "UTC")
    time.tzset()
    yield
    mp.undo()
    time.tzset()


@pytest.fixture
def config(tmp_path):
    return AnalyzerConfig(data_dir=str(tmp_path / "analysis_data"))


@pytest.fixture
def data_manager(config):
    return DataManager(config)
