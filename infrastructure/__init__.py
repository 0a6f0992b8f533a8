"""CDK constructs and stacks for the ECS workload."""
