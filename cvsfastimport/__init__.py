"""Parse RCS ,v files, detect CVS patchsets and keep incremental import state."""

__version__ = "0.1.0"