"""Release bounded context.

Contracts shared between the deploy and notify services and the CLI:
plain data in, plain result objects out.
"""

from __future__ import annotations
