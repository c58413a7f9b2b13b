from dataclasses import asdict
from typing import Any, Dict, List

from tunebridge.domain.entities import PlayableTrack, SearchMatch, platform_name
from tunebridge.domain.errors import LyricsNotSupported, NoUsableResult, ProviderFault, UnknownProviderFault


def match_to_dict(match: SearchMatch) -> Dict[str, Any]:
    data = {
        'key': match.key,
        'title': match.title,
        'artist': match.artist,
        'cover': match.cover,
        'platform': match.platform.value,
        'platformName': platform_name(match.platform),
        'provider': match.provider.value,
    }
    if match.extra:
        data['extra'] = dict(match.extra)
    return data


def track_to_dict(track: PlayableTrack) -> Dict[str, Any]:
    data = match_to_dict(track)
    data.update({
        'audioUrl': track.audio_url,
        'lyrics': track.lyrics,
        'cloudId': track.cloud_id,
        'details': {k: v for k, v in asdict(track.details).items() if v is not None},
    })
    return data


def matches_to_list(matches: List[SearchMatch]) -> List[Dict[str, Any]]:
    return [match_to_dict(m) for m in matches]


def fault_status(fault: ProviderFault) -> int:
    """HTTP status for a fault surfaced to a caller."""
    if isinstance(fault, UnknownProviderFault):
        return 400
    if isinstance(fault, NoUsableResult):
        return 404
    if isinstance(fault, LyricsNotSupported):
        return 501
    if fault.code == 400:
        return 400
    return 502


def fault_to_dict(fault: ProviderFault) -> Dict[str, Any]:
    return {'code': fault.code, 'msg': fault.message, 'provider': fault.provider}
