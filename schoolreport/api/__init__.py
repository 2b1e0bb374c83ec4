"""Resource API modules, one per backend resource.

Every function takes the client as its first argument and issues exactly one
HTTP call. Errors propagate unchanged to the caller.
"""

__all__ = [
	"analytics",
	"attendance",
	"auth",
	"classes",
	"comments",
	"marks",
	"reports",
	"school",
	"students",
]
