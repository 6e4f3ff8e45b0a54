"""Services — async orchestration of core rules around the persistence protocols."""
