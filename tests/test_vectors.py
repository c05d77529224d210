"""Test vectors for selfnote cross-implementation testing."""

# Secret keys (32-byte hex strings)
ALICE_SECRET_KEY_HEX = "0000000000000000000000000000000000000000000000000000000000000001"
BOB_SECRET_KEY_HEX = "0000000000000000000000000000000000000000000000000000000000000002"

# Expected x-only public keys
ALICE_PUBLIC_KEY_HEX = "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
BOB_PUBLIC_KEY_HEX = "c6047f9441ed7d6d3045406e95c07cd85c778e4b8cef3ca7abac09b95c709ee5"

# Bech32 key encodings
NSEC = "nsec1vl029mgpspedva04g90vltkh6fvh240zqtv9k0t9af8935ke9laqsnlfe5"
NSEC_HEX = "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"
NPUB = "npub10elfcs4fr0l0r8af98jlmgdh9c8tcxjvz9qkw038js35mp4dma8qzvjptg"
NPUB_HEX = "7e7e9c42a91bfef19fa929e5fda1b72e0ebc1a4c1141673e2794234d86addf4e"

# BIP-340 signature vector
SCHNORR_SECRET_KEY_HEX = "0000000000000000000000000000000000000000000000000000000000000003"
SCHNORR_PUBLIC_KEY_HEX = "f9308a019258c31049344f85f89d5229b531c845836f99b08601f113bce036f9"
SCHNORR_AUX_RAND_HEX = "00" * 32
SCHNORR_MESSAGE_HEX = "00" * 32
SCHNORR_SIGNATURE_HEX = (
    "e907831f80848d1069a5371b402410364bdf1c5f8307b0084c55f1ce2dca8215"
    "25f66a4a85ea8b71e482a74f382d2ce5ebeee8fdb2172f477df4900d310536c0"
)

# Low scrypt work factor to keep tests fast
TEST_LOG_N = 4

# Padding buckets: (plaintext length, padded length)
PADDING_CASES = [
    (0, 32),
    (1, 32),
    (16, 32),
    (32, 32),
    (33, 64),
    (37, 64),
    (45, 64),
    (49, 64),
    (64, 64),
    (65, 96),
    (100, 128),
    (111, 128),
    (200, 224),
    (250, 256),
    (320, 320),
    (383, 384),
    (384, 384),
    (400, 448),
    (500, 512),
    (1000, 1024),
    (1024, 1024),
    (65515, 65536),
]

# Test messages covering edge cases
TEST_MESSAGES = {
    "empty": "",
    "single_char": "X",
    "whitespace": "   \t\n   ",
    "punctuation": "!@#$%^&*()_+-=[]{}\\|;':\",./<>?",
    "newlines": "Line 1\nLine 2\nLine 3",
    "emoji": "Hello \U0001F44B World \U0001F30D",
    "chinese": "你好世界 - Hello World",
    "accents": "Café résumé naïve",
    "json": '{"key": "value", "num": 42}',
    "html": '<div class="test">Content</div>',
    "long_text": "The quick brown fox jumps over the lazy dog. " * 40,
}

# x-coordinate with no point on the curve
OFF_CURVE_X_HEX = "eefdea4cdb677750a420fee807eacf21eb9898ae79b9768766e4faa04a2d4a34"

# NIP-44 v2 known-answer vector (Alice's secret key, Bob's public key)
NIP44_CONVERSATION_KEY_PREFIX = "c41c7753"
NIP44_CONVERSATION_KEY_SUFFIX = "ea1412d"
NIP44_NONCE_HEX = "0000000000000000000000000000000000000000000000000000000000000001"
NIP44_PLAINTEXT = "a"
NIP44_PAYLOAD = (
    "AgAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAB"
    "ee0G5VSK0/9YypIObAtDKfYEAjD35uVkHyB0F4DwrcNaCXlCWZKaArsGrY6M9wnuTMxWfp1RTN9Xga8no+kF5Vsb"
)
