"""32-bit MurmurHash3-style mixing helpers."""

_MASK32 = 0xFFFFFFFF


def hash_rot(x, k):
    """Rotate the 32-bit value ``x`` left by ``k`` bits."""
    x &= _MASK32
    return ((x << k) | (x >> (32 - k))) & _MASK32


def _mhash_mix(hash_, data):
    # A zero-valued word leaves the hash untouched.
    if not data:
        return hash_
    data = (data * 0xCC9E2D51) & _MASK32
    data = hash_rot(data, 15)
    data = (data * 0x1B873593) & _MASK32
    return hash_ ^ data


def mhash_add(hash_, data):
    """Mix one 32-bit word ``data`` into ``hash_``."""
    hash_ = _mhash_mix(hash_ & _MASK32, data & _MASK32)
    hash_ = hash_rot(hash_, 13)
    return (hash_ * 5 + 0xE6546B64) & _MASK32


def mhash_finish(hash_):
    """Apply the final avalanche step to ``hash_``."""
    hash_ &= _MASK32
    hash_ ^= hash_ >> 16
    hash_ = (hash_ * 0x85EBCA6B) & _MASK32
    hash_ ^= hash_ >> 13
    hash_ = (hash_ * 0xC2B2AE35) & _MASK32
    hash_ ^= hash_ >> 16
    return hash_


def hash_add(hash_, data):
    """Mix one 32-bit word into a running hash."""
    return mhash_add(hash_, data)


def hash_finish(hash_, final):
    """Finish a running hash, folding in ``final`` first."""
    return mhash_finish((hash_ ^ final) & _MASK32)


def hash_2words(x, y):
    """Hash two 32-bit words."""
    return hash_finish(hash_add(hash_add(x, 0), y), 8)


def hash_int(x, basis):
    """Hash the 32-bit integer ``x`` with the seed ``basis``."""
    return hash_2words(x, basis)