"""VidHub video-sharing API."""
