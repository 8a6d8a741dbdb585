"""Time-of-day dispatch constraints for transit line simulations."""
