"""
Small building blocks shared by the bridge: background loops, retry timing and event sources.
"""
