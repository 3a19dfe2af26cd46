import numpy as np, soundfile as sf
import pytest

from commscore.config import Settings
from commscore.replay import load_audio_windows, replay_audio


def _write_tone(tmp_path, sr=16000):
    tone = np.sin(2*np.pi*200*np.arange(sr)/sr)*0.5
    sil = np.zeros(sr//2)
    wav = tmp_path / 'voice.wav'
    sf.write(wav, np.concatenate([tone, sil]), sr)
    return str(wav)


def test_replay_audio(tmp_path):
    wav = _write_tone(tmp_path)
    out = replay_audio(wav, Settings())
    assert len(out) == 11  # 24000 samples / 2048, tail dropped
    assert all(a.voiced for a in out[:7])
    assert out[3].pitch == pytest.approx(200.0, rel=0.02)
    assert not out[-1].voiced


def test_hop(tmp_path):
    wav = _write_tone(tmp_path)
    windows = list(load_audio_windows(wav, Settings(), hop=1024))
    assert len(windows) == 22
    assert all(len(w) == 2048 for w in windows)
    with pytest.raises(ValueError):
        list(load_audio_windows(wav, Settings(), hop=0))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        replay_audio(str(tmp_path / 'nope.wav'), Settings())
