from django.contrib import admin

from .models import Cart, CartItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    fields = ['item_type', 'item_id', 'name', 'price', 'quantity', 'subtotal']
    readonly_fields = ['subtotal']
    extra = 0


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ['id', 'member', 'status', 'item_count', 'created_at', 'updated_at']
    list_filter = ['status', 'created_at']
    search_fields = ['member__name', 'member__email']
    ordering = ['-created_at']
    list_select_related = ['member']
    inlines = [CartItemInline]

    def save_formset(self, request, form, formset, change):
        for item in formset.save(commit=False):
            item.recalculate_subtotal()
            item.save()
        for item in formset.deleted_objects:
            item.delete()

    def item_count(self, obj):
        return obj.items.count()
    item_count.short_description = 'Items'


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'item_type', 'price', 'quantity', 'subtotal', 'cart', 'created_at']
    list_filter = ['item_type']
    search_fields = ['name', 'item_id']
    readonly_fields = ['subtotal']

    def save_model(self, request, obj, form, change):
        obj.recalculate_subtotal()
        super().save_model(request, obj, form, change)
