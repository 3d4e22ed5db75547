"""Release stages: disk guard, builder, bundler, signing, publisher, pipeline."""
