import os

from PySide6.QtMultimedia import QSoundEffect
from PySide6.QtCore import QUrl

from utils.catalog_loader import SFX_CUES


class AudioEngine:
    def __init__(self, volume: float = 0.25):
        self.effects = {cue: QSoundEffect() for cue in SFX_CUES}
        self.volume = volume
        self.enabled = True

    def load_from_dir(self, sfx_dir: str):
        for cue, effect in self.effects.items():
            effect.setSource(QUrl.fromLocalFile(os.path.abspath(os.path.join(sfx_dir, f"{cue}.wav"))))
            effect.setVolume(self.volume)

    def toggle_mute(self, muted=None) -> bool:
        self.enabled = (not self.enabled) if muted is None else not muted
        return not self.enabled

    def play(self, cue: str):
        effect = self.effects.get(cue)
        if self.enabled and effect is not None:
            effect.play()
