"""Text processing: atoms, phoneme resolution, segmentation and chunk building."""
