"""Video transforms: HLS renditions and poster thumbnails"""
