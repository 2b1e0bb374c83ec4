"""School report Python client package.

Keep package import lightweight; import heavy submodules explicitly where needed.
"""

__version__ = "1.0.0"
__all__ = [
	"client",
	"config",
	"session",
	"models",
	"exceptions",
	"reconcile",
	"summary",
	"export",
	"api",
	"pages",
]
