"""Video-generation provider abstraction.

Usage:
    from veovision.services.video import VeoVideoGenerator

    generator = VeoVideoGenerator(api_key)
    operation = await generator.submit(prompt, aspect_ratio="16:9", resolution="1080p")
"""

from veovision.services.video.base import GeneratedVideoRef, VideoGenerator, VideoOperation
from veovision.services.video.veo_adapter import VeoVideoGenerator

__all__ = ["GeneratedVideoRef", "VeoVideoGenerator", "VideoGenerator", "VideoOperation"]
