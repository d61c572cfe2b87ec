# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
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

"""
Domain exceptions for the valuation and risk engine.

Every engine failure on bad input is a ValueError subclass so callers that
already guard numeric code with ``except ValueError`` keep working, while
callers that care can catch the specific type.
"""


class ExitReadyError(ValueError):
    """Base class for invalid engine input."""


class InvalidWeightsError(ExitReadyError):
    """Category weight set is malformed (negative, unknown category, bad sum)."""


class InvalidValuationInputError(ExitReadyError):
    """Valuation formula received non-positive multiples or out-of-range scores."""


class InvalidDCFInputError(ExitReadyError):
    """DCF or WACC inputs cannot produce a meaningful valuation."""


class TerminalGrowthError(InvalidDCFInputError):
    """Perpetual growth rate is at or above the discount rate."""

    def __init__(self, growth_rate: float, wacc: float):
        self.growth_rate = growth_rate
        self.wacc = wacc
        super().__init__(
            f"Terminal growth {growth_rate:.2%} must be below WACC {wacc:.2%} for the Gordon growth method"
        )


class SignalTransitionError(ExitReadyError):
    """Confirm or dismiss requested on a signal that can no longer change."""


class InvalidSimulationInputError(ExitReadyError):
    """Retirement assumptions or simulation parameters are unusable."""
