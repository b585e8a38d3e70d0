# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */


"""mesh_installer - dependency-ordered service mesh component installer."""

from __future__ import annotations

import io
import logging
import threading
from contextlib import contextmanager

from rich.console import Console

__version__ = "0.1.0"


class ThreadAwareConsole:
    """Rich console proxy whose output can be captured per thread.

    Component tasks run concurrently; each captures its progress lines with
    :meth:`buffered` and prints them as one block when it finishes.
    """

    def __init__(self, real_console: Console) -> None:
        self._real = real_console
        self._local = threading.local()

    @property
    def target(self) -> Console:
        """Console receiving output on the calling thread."""
        return getattr(self._local, "console", None) or self._real

    def __getattr__(self, name: str):
        return getattr(self.target, name)

    @contextmanager
    def buffered(self):
        """Capture the current thread's console output in a string buffer."""
        buf = io.StringIO()
        self._local.console = Console(file=buf, width=self._real.width)
        try:
            yield buf
        finally:
            self._local.console = None


console = ThreadAwareConsole(Console(stderr=True))
logger = logging.getLogger("mesh_installer")
