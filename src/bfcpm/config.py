"""
Compiler Configuration
======================

Settings that shape the generated image. Configuration can come from:
- Default values (defined here, matching a stock CP/M 2.2 system)
- Keyword arguments / command-line options
- Environment variables (CompilerConfig.from_env)

30000 cells is the customary Brainfuck memory size. Cells past the
configured size are not zeroed by the preamble, and nothing stops a
program from wandering into them.
"""

import logging
import os
from dataclasses import dataclass

from bfcpm import cpm
from bfcpm.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class CompilerConfig:
    """
    Configuration for one compilation.

    Attributes:
        load_base: Address the image is loaded at; byte 0 of the image
            lives here and every embedded address is offset by it
        memory_size: Number of cells zeroed after the code (1-65535)
        max_loop_depth: Capacity of the loop marker stack
        growth_chunk: Bytes added to the output buffer on each reallocation
        bdos_entry: Address called for console input/output
        warm_boot: Address jumped to when the program finishes
    """

    load_base: int = cpm.TPA_BASE
    memory_size: int = 30000
    max_loop_depth: int = 1024
    growth_chunk: int = 128
    bdos_entry: int = cpm.BDOS
    warm_boot: int = cpm.WBOOT

    # =========================================================================
    # FACTORY METHODS
    # =========================================================================

    @classmethod
    def from_env(cls) -> "CompilerConfig":
        """
        Create a CompilerConfig from environment variables.

        Environment variables (all optional):
            BFCPM_MEMORY_SIZE: Number of cells to zero
            BFCPM_MAX_LOOP_DEPTH: Loop marker stack capacity
            BFCPM_GROWTH_CHUNK: Output buffer growth step

        Returns:
            CompilerConfig with values from environment variables
        """
        config = cls()

        overrides = {
            "BFCPM_MEMORY_SIZE": "memory_size",
            "BFCPM_MAX_LOOP_DEPTH": "max_loop_depth",
            "BFCPM_GROWTH_CHUNK": "growth_chunk",
        }
        for variable, attribute in overrides.items():
            if value := os.environ.get(variable):
                try:
                    setattr(config, attribute, int(value, 0))
                except ValueError:
                    logger.warning(f"Ignoring {variable}={value!r}: not an integer")

        return config

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate(self) -> None:
        """
        Check every setting is in range.

        Raises:
            ConfigError: If any setting is out of range
        """
        for name in ("load_base", "bdos_entry", "warm_boot"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFF:
                raise ConfigError(f"{name} must be a 16-bit address, got {value:#x}")

        # LD DE,memory_size / DEC DE / test DE: zero would clear 64K
        if not 1 <= self.memory_size <= 0xFFFF:
            raise ConfigError(
                f"memory_size must be between 1 and 65535, got {self.memory_size}"
            )

        if self.max_loop_depth < 1:
            raise ConfigError(
                f"max_loop_depth must be at least 1, got {self.max_loop_depth}"
            )

        if self.growth_chunk < 1:
            raise ConfigError(
                f"growth_chunk must be at least 1, got {self.growth_chunk}"
            )
