"""
CP/M 2.2 Environment Definitions
================================

Addresses and BDOS function numbers assumed by generated programs.

Memory map seen by a .COM program:

    +-------------+-----------------------+----------------------+-----+------+------+
    | 0x00 - 0xff | code (unknown length) | cells (memory_size)  | ... | BDOS | BIOS |
    +-------------+-----------------------+----------------------+-----+------+------+
    | Low storage |          Transient Program Area (TPA)        |  CCP / BDOS / BIOS |
    +-------------+----------------------------------------------+--------------------+

A .COM file has no header and no relocation information: it is copied
byte for byte to TPA_BASE and entered there.

Reference
---------
- CP/M 2.2 Operating System Manual, section 5 (BDOS function calls)

Copyright (c) 2026 bfcpm Contributors
"""

# =============================================================================
# Fixed Addresses
# =============================================================================

WBOOT = 0x0000      # JP here to warm boot (return to the CCP)
BDOS = 0x0005       # CALL here with function number in C
TPA_BASE = 0x0100   # Load address of every .COM program

# =============================================================================
# BDOS Functions
# =============================================================================

C_READ = 1          # Console input: waits for a byte, returns it in A
C_WRITE = 2         # Console output: writes the byte in E

# =============================================================================
# Console Characters
# =============================================================================

CR = 0x0D
LF = 0x0A
CTRL_Z = 0x1A       # Conventional end-of-file marker

KNOWN_ADDRESSES: dict[int, str] = {
    WBOOT: "WBOOT",
    BDOS: "BDOS",
}
