"""
Pairdex Constants

This module consolidates all global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast

from dotenv import dotenv_values
from eth_utils import keccak

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

ENGINE_DEFAULTS = {
    'PAIRDEX_CHAIN_ID':                '1',
    'PAIRDEX_CONFIG':                  'pairdex.toml',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE PROTOCOL VALUES BELOW ARE NOT MEANT TO BE CHANGED. PAIR ADDRESSES, SHARE
# AMOUNTS AND PRICE ACCUMULATORS ARE ALL DERIVED FROM THEM; CHANGING ANY OF THEM PRODUCES
# AN ENGINE WHOSE STATE IS INCOMPATIBLE WITH EVERY EXISTING DEPLOYMENT.

# ==================================================================================
# INTEGER WIDTHS
# ==================================================================================
UINT32_MAX = 2**32 - 1
UINT112_MAX = 2**112 - 1
UINT224_MAX = 2**224 - 1
UINT256_MAX = 2**256 - 1

# Fixed-point resolution of the price accumulators (UQ112x112)
RESOLUTION = 112
Q112 = 2**RESOLUTION

# Block timestamps wrap at uint32
TIMESTAMP_MODULUS = 2**32


# ==================================================================================
# PAIR PARAMETERS
# ==================================================================================
# Shares permanently locked to ZERO_ADDRESS on the first mint
MINIMUM_LIQUIDITY = 10**3

# Swap fee: 3 / 1000 of the input side (0.30%)
SWAP_FEE_NUMERATOR = 3
SWAP_FEE_DENOMINATOR = 1000

# Protocol fee takes 1 / (PROTOCOL_FEE_DIVISOR + 1) of the root-k growth
PROTOCOL_FEE_DIVISOR = 5

# Allowance value that is never decremented by transfer_from
INFINITE_ALLOWANCE = UINT256_MAX


# ==================================================================================
# IDENTITIES
# ==================================================================================
ZERO_ADDRESS = '0x' + '00' * 20

# Creation template of the pair implementation. The pair address commits to its hash,
# so every factory derives the same address for the same asset pair.
PAIR_INIT_CODE = b'pairdex:ReservePair:v1'
PAIR_INIT_CODE_HASH = keccak(PAIR_INIT_CODE)


# ==================================================================================
# LIQUIDITY SHARE TOKEN
# ==================================================================================
LP_TOKEN_NAME = 'Pairdex LP'
LP_TOKEN_SYMBOL = 'PDX-LP'
LP_TOKEN_DECIMALS = 18
LP_TOKEN_VERSION = '1'

EIP712_DOMAIN_TYPEHASH = keccak(
    text='EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)'
)
PERMIT_TYPEHASH = keccak(
    text='Permit(address owner,address spender,uint256 value,uint256 nonce,uint256 deadline)'
)


# ==================================================================================
# ASSET TOKENS
# ==================================================================================
TOKEN_DEFAULT_DECIMALS = 18
TOKEN_MAX_DECIMALS = 36


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = ENGINE_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    # Case-insensitive membership check
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    # Parses only boolean-literals. Leaves other values untouched.
    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    # Wraps based on parsed value type.
    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        # Preserves the original raw string for ConfigString storage.
        namespace[key] = ConfigString(value_raw, default_val)
