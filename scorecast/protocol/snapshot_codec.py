"""
Versioned snapshot payload codec.

Payload layout: [1-byte flags] + [msgpack-encoded SnapshotEnvelope],
where the flags byte marks whether the envelope bytes are zstandard
compressed. The envelope carries a format version which decoders check
before trusting the state.
"""

import msgspec
import zstandard

from scorecast.errors import SnapshotDecodeError
from scorecast.models import SessionState, SnapshotEnvelope


SNAPSHOT_FORMAT_VERSION = 1

FLAG_RAW = 0x00
FLAG_ZSTD = 0x01


class SnapshotCodec:
    def __init__(
        self,
        compress: bool = True,
        version: int = SNAPSHOT_FORMAT_VERSION,
    ) -> None:
        self.compress = compress
        self.version = version
        self._encoder = msgspec.msgpack.Encoder()
        self._decoder = msgspec.msgpack.Decoder(SnapshotEnvelope)
        self._compressor: zstandard.ZstdCompressor | None = None
        self._decompressor: zstandard.ZstdDecompressor | None = None

    def encode(
        self,
        state: SessionState,
        sequence: int = 0,
    ) -> bytes:
        envelope = SnapshotEnvelope(
            version=self.version,
            sequence=sequence,
            state=state,
        )

        data = self._encoder.encode(envelope)

        if self.compress:
            if self._compressor is None:
                self._compressor = zstandard.ZstdCompressor()

            return bytes([FLAG_ZSTD]) + self._compressor.compress(data)

        return bytes([FLAG_RAW]) + data

    def decode_envelope(self, payload: bytes) -> SnapshotEnvelope:
        if len(payload) < 1:
            raise SnapshotDecodeError("Err. - empty snapshot payload")

        flags = payload[0]
        data = payload[1:]

        if flags == FLAG_ZSTD:
            if self._decompressor is None:
                self._decompressor = zstandard.ZstdDecompressor()

            try:
                data = self._decompressor.decompress(data)

            except zstandard.ZstdError as err:
                raise SnapshotDecodeError(
                    f"Err. - could not decompress snapshot: {err}"
                ) from err

        elif flags != FLAG_RAW:
            raise SnapshotDecodeError(f"Err. - unknown snapshot flags {flags:#x}")

        try:
            envelope = self._decoder.decode(data)

        except msgspec.DecodeError as err:
            raise SnapshotDecodeError(
                f"Err. - could not decode snapshot: {err}"
            ) from err

        if envelope.version != self.version:
            raise SnapshotDecodeError(
                f"Err. - unsupported snapshot version {envelope.version}"
            )

        return envelope

    def decode(self, payload: bytes) -> SessionState:
        return self.decode_envelope(payload).state
