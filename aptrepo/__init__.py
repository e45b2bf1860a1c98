"""
aptrepo - 从 .deb 软件包目录生成 APT 仓库

Build a static Debian APT repository (pool/ and dists/) from a directory of .deb files.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config.schema import RepositoryConfig
from .build.builder import Builder

__all__ = ["RepositoryConfig", "Builder", "__version__"]
