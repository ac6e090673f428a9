# powerkey_core/constants.py

# Fixed-point scale: one decimal digit of precision
VALUE_SCALE = 10
UINT32_MAX = 0xFFFFFFFF

ZERO_ADDRESS = "0x" + "0" * 40

DEFAULT_AUTH_DURATION_DAYS = 365
SECONDS_PER_DAY = 86400

AUTH_DOMAIN = "powerkey-decryption-v1"
INPUT_PROOF_DOMAIN = b"powerkey-input-v1"
