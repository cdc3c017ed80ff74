class InvalidConfiguration(Exception):
    def __init__(self, msg):
        super().__init__(self)
        self.msg = msg

    def __str__(self):
        return self.msg


class ConfigError(Exception):
    pass


class G2PEngineUnavailableError(NotImplementedError):
    """No grapheme-to-phoneme engine is registered for a voice id"""

    def __init__(self, voice_id: str):
        super().__init__(
            f"Sorry, we don't have a grapheme-to-phoneme engine available for '{voice_id}'."
            " Register one with the `g2p_engines` configuration option or a phonochunk_plugin module."
        )
        self.voice_id = voice_id


class G2PError(Exception):
    pass
