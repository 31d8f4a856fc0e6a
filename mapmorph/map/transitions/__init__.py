"""
Level transition engine.

Spec table -> anchor/ratio resolution -> per-frame poses -> entity
correspondence, driven by the TransitionOrchestrator state machine.
"""
