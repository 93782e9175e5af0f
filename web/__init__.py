"""Flask front end for the provider-filtered storefront catalog."""
