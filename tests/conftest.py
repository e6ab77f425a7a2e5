import os
import sys

import pytest

# Ensure project root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


NETSTAT_DETAILED = """\
Active Internet connections (only servers)
Proto Recv-Q Send-Q Local Address           Foreign Address         State       PID/Program name
tcp        0      0 127.0.0.53:53           0.0.0.0:*               LISTEN      612/systemd-resolve
tcp        0      0 0.0.0.0:22              0.0.0.0:*               LISTEN      812/sshd: /usr/sbin
tcp        0      0 0.0.0.0:8080            0.0.0.0:*               LISTEN      1234/java
tcp6       0      0 :::80                   :::*                    LISTEN      -
udp        0      0 127.0.0.53:53           0.0.0.0:*                           612/systemd-resolve
udp        0      0 0.0.0.0:68              0.0.0.0:*                           744/dhclient
"""

NETSTAT_LIMITED = """\
Active Internet connections (only servers)
Proto Recv-Q Send-Q Local Address           Foreign Address         State
tcp        0      0 0.0.0.0:22              0.0.0.0:*               LISTEN
tcp6       0      0 :::80                   :::*                    LISTEN
udp        0      0 0.0.0.0:68              0.0.0.0:*
"""

SS_DETAILED = """\
Netid State  Recv-Q Send-Q Local Address:Port  Peer Address:Port Process
udp   UNCONN 0      0      127.0.0.53%lo:53         0.0.0.0:*     users:(("systemd-resolve",pid=612,fd=13))
tcp   LISTEN 0      4096   127.0.0.53%lo:53         0.0.0.0:*     users:(("systemd-resolve",pid=612,fd=14))
tcp   LISTEN 0      128          0.0.0.0:22         0.0.0.0:*     users:(("sshd",pid=812,fd=3))
tcp   LISTEN 0      511             [::]:80            [::]:*     users:(("nginx",pid=900,fd=6),("nginx",pid=899,fd=6))
tcp   LISTEN 0      128        127.0.0.1:631        0.0.0.0:*
"""

SS_LIMITED = """\
Netid State  Recv-Q Send-Q Local Address:Port  Peer Address:Port Process
udp   UNCONN 0      0            0.0.0.0:5353       0.0.0.0:*
tcp   LISTEN 0      128          0.0.0.0:22         0.0.0.0:*
tcp   LISTEN 0      511             [::]:80            [::]:*
"""


@pytest.fixture
def netstat_detailed():
    return NETSTAT_DETAILED


@pytest.fixture
def netstat_limited():
    return NETSTAT_LIMITED


@pytest.fixture
def ss_detailed():
    return SS_DETAILED


@pytest.fixture
def ss_limited():
    return SS_LIMITED
