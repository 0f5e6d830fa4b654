"""
speechwav.media - Demux and decode capability.

The extraction pipeline talks to these objects only through the protocols in
speechwav.media.base. The default implementation is backed by PyAV.
"""

from __future__ import annotations
