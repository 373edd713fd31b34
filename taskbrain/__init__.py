"""TaskBrain: hierarchical task tree with inheritable tags."""
