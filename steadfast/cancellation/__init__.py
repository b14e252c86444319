# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package cancellation provides cooperative cancellation for steadfast operations.

Every operation executed by a resilience strategy receives a CancellationToken.
Strategies derive linked tokens from the caller's token so that their own
cancellation causes (a deadline, for example) remain distinguishable from the
caller's.
"""

from .token import (
    CancellationToken,
    CancellationTokenSource,
)

__all__ = [
    'CancellationToken',
    'CancellationTokenSource',
]
