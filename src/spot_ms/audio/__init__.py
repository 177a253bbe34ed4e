"""
Audio Pipeline.

    - timeline.py: Plan the spot layout from the voice duration
    - graph.py: Express a plan as an ffmpeg filter graph
    - engine.py: ffmpeg/ffprobe subprocess engine
    - probe.py: Voice duration measurement
    - mixer.py: Render a graph to encoded audio
"""
